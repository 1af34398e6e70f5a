"""Canteen business services"""

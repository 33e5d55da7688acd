"""Inventory management core: identity, sessions, cart and catalog"""

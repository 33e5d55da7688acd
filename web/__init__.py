"""HTTP boundary for the inventory application"""

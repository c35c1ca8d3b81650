"""
Comic catalog feature: persistence, validation, image uploads and routes.
"""

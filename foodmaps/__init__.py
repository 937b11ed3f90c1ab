"""
                Food Discovery Maps Proxy

Server-side mediation of map initialization, routing, static map
images, tiles and reverse geocoding for the food-discovery web app,
keeping the mapping provider's API key off the browser.
"""

__version__ = "1.0.0"

"""GigScout: scrape, score and alert on social media marketing gigs."""

__version__ = "0.1.0"

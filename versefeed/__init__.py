"""
versefeed: an endless, swipeable feed of Bible verses.

Packages:
- services.scripture: API.Bible client and verse reshaping for the HTTP surface
- services.feed: FeedState, the client-side feed state manager
- routes: Flask blueprints proxying the scripture service
"""

__version__ = "0.3.0"

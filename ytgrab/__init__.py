"""ytgrab: inspect and download YouTube streams from the browser."""

__app_name__ = "ytgrab"
__version__ = "0.1.0"

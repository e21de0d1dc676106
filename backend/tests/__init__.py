"""
Test suite for the YouTube to MP3 backend.

Test modules mirror the source layout: services/, pipeline/ and the routers.
"""

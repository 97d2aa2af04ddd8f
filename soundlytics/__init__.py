"""
Soundlytics

Audio genre and musical-DNA analysis: capture or upload a clip (or
describe one in text), send it to a hosted multimodal model and present
the structured result as a dashboard.
"""

__version__ = "1.0.0"
__author__ = "Soundlytics Team"

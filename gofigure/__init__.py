"""
GoFigure backend.

Turns an uploaded photo into a stylized figurine image and then into a
downloadable 3D model by orchestrating two external generation services.
"""

__version__ = "0.1.0"

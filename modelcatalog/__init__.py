"""
3D Model Catalog API

Catalogs user-submitted 3D models and keeps their stored assets
(preview image, video, model files) in step with the catalog records.
"""

__version__ = "1.0.0"

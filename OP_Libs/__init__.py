"""
OP_Libs - Open Photo Library Modules

This package contains the photo editing core for the Open Photo project,
organized into specialized sub-packages:

- ImageEditingLib: Raster buffer, pixel filters, adjustment pipeline and geometry
- LayersLib: Text and sticker layer model, resource loading and layer rendering
- EditorLib: Editor session and export compositing
- PhotoStoreLib: Local and HTTP photo stores
"""

__version__ = "0.1.0"

"""
EditorLib - Editor session and export

This module provides the EditorSession that ties the adjustment pipeline,
the layer stack and the photo stores together, and the export compositor
that flattens a session into an encoded image.
"""

from OP_Libs.EditorLib.export_compositor import (
    ExportedImage,
    composite,
    encode_image,
    export_image,
    export_image_async,
)
from OP_Libs.EditorLib.editor_session import EditorSession

__all__ = [
    "ExportedImage",
    "composite",
    "encode_image",
    "export_image",
    "export_image_async",
    "EditorSession",
]

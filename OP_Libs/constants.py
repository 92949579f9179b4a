"""
Constants and configuration values for Open Photo.

This module centralizes all constant values, magic numbers, and
default settings used throughout the editing core.
"""

# Working (preview) canvas bounds
DEFAULT_WORKING_WIDTH = 800
DEFAULT_WORKING_HEIGHT = 600

# Adjustment knob ranges: name -> (minimum, maximum, neutral)
ADJUSTMENT_RANGES = {
    "brightness": (-100.0, 100.0, 0.0),
    "contrast": (-100.0, 100.0, 0.0),
    "saturation": (-100.0, 100.0, 0.0),
    "rotation": (-180.0, 180.0, 0.0),
    "temperature": (-100.0, 100.0, 0.0),
    "hue": (0.0, 360.0, 0.0),
    "exposure": (-100.0, 100.0, 0.0),
    "shadows": (-100.0, 100.0, 0.0),
    "highlights": (-100.0, 100.0, 0.0),
    "clarity": (-100.0, 100.0, 0.0),
    "vibrance": (-100.0, 100.0, 0.0),
    "sharpness": (0.0, 100.0, 0.0),
    "blur": (0.0, 50.0, 0.0),
    "noise": (0.0, 100.0, 0.0),
    "vignette": (0.0, 100.0, 0.0),
}

# Named filter presets
NAMED_FILTER_NONE = "none"
NAMED_FILTER_GRAYSCALE = "grayscale"
NAMED_FILTER_SEPIA = "sepia"
NAMED_FILTER_VINTAGE = "vintage"
NAMED_FILTERS = (
    NAMED_FILTER_NONE,
    NAMED_FILTER_GRAYSCALE,
    NAMED_FILTER_SEPIA,
    NAMED_FILTER_VINTAGE,
)

# Luma weights (ITU-R BT.601)
LUMA_RED = 0.299
LUMA_GREEN = 0.587
LUMA_BLUE = 0.114

# Filter tuning
TEMPERATURE_SHIFT = 30.0
TONAL_PIVOT = 128.0
TONAL_STRENGTH = 50.0
NOISE_STRENGTH = 50.0
BLUR_RADIUS_STEP = 10
SHARPEN_KERNEL = (
    (0, -1, 0),
    (-1, 5, -1),
    (0, -1, 0),
)

# Crop tool
CROP_DEFAULT_INSET = 0.1
CROP_ASPECT_RATIOS = {
    "free": None,
    "1:1": 1.0,
    "4:3": 4 / 3,
    "16:9": 16 / 9,
    "9:16": 9 / 16,
}

# Layer kinds
LAYER_KIND_TEXT = "text"
LAYER_KIND_STICKER = "sticker"

# Layer defaults
DEFAULT_TEXT_CONTENT = "New text"
DEFAULT_TEXT_X = 100.0
DEFAULT_TEXT_Y = 100.0
DEFAULT_TEXT_WIDTH = 200.0
DEFAULT_TEXT_HEIGHT = 50.0
DEFAULT_FONT_SIZE = 24
DEFAULT_FONT_FAMILY = "Arial"
DEFAULT_TEXT_COLOR = "#000000"
DEFAULT_TEXT_ALIGN = "left"
DEFAULT_STROKE_COLOR = "#000000"
DEFAULT_SHADOW_COLOR = "#000000"
TEXT_ALIGNMENTS = ("left", "center", "right")

DEFAULT_STICKER_X = 150.0
DEFAULT_STICKER_Y = 150.0
DEFAULT_STICKER_WIDTH = 100.0
DEFAULT_STICKER_HEIGHT = 100.0

DUPLICATE_OFFSET = 20.0

# Text layout (matches the on-screen text box)
TEXT_PADDING_X = 8
TEXT_PADDING_Y = 4
TEXT_LINE_HEIGHT = 1.2
UNDERLINE_GAP = 2
UNDERLINE_THICKNESS_DIVISOR = 16

# Fonts offered by the text toolbar
GOOGLE_FONTS = (
    "Roboto",
    "Open Sans",
    "Lato",
    "Montserrat",
    "Poppins",
    "Raleway",
    "Playfair Display",
    "Merriweather",
)
FONT_FILE_EXTENSIONS = {".ttf", ".otf", ".ttc"}

# Resource loading
DEFAULT_RESOURCE_TIMEOUT = 10.0
DEFAULT_HTTP_TIMEOUT = 30.0

# Export
DEFAULT_EXPORT_FORMAT = "JPEG"
DEFAULT_EXPORT_QUALITY = 95
EXPORT_JPEG_BACKGROUND = (0, 0, 0)
EXPORT_MIME_TYPES = {
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
}

# Photo store
PHOTOS_DIR_NAME = "Photos"
PHOTO_INDEX_FILE = "index.json"
PHOTO_MAX_BYTES = 10 * 1024 * 1024
PHOTO_MIME_EXTENSIONS = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
}
SAFE_FILENAME_CHARS = "-_"
FILENAME_REPLACEMENT_CHAR = "_"
DEFAULT_PHOTO_TITLE = "edited_photo"

# Photo record field names
FIELD_PHOTO_ID = "id"
FIELD_TITLE = "title"
FIELD_FILENAME = "filename"
FIELD_MIME_TYPE = "mime_type"
FIELD_SIZE = "size"
FIELD_WIDTH = "width"
FIELD_HEIGHT = "height"
FIELD_CREATED_AT = "created_at"
FIELD_NEXT_ID = "next_id"
FIELD_PHOTOS = "photos"

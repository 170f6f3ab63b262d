"""
Configuration settings for the Wound Tissue Segmentation service.
Contains confidence banding, overlay parameters, and system constants.
"""
import os


# --- Stage 1: Per-Pixel Classification ---

# Confidence bands (inclusive on both ends), ordered from the most to the least
# confident. The position in this list is the confidence bucket index and matches
# the order of CONFIDENCE_LABELS in tissue_data.py.
# The bands leave gaps such as (0.90, 0.91); values in a gap, below 0.01 or
# above 1.0 fall back to DEFAULT_CONFIDENCE_BUCKET.
CONFIDENCE_BUCKET_RANGES = [
    (0.91, 1.00),
    (0.81, 0.90),
    (0.71, 0.80),
    (0.61, 0.70),
    (0.51, 0.60),
    (0.41, 0.50),
    (0.31, 0.40),
    (0.21, 0.30),
    (0.11, 0.20),
    (0.01, 0.10),
]

# Bucket used for any value not covered by CONFIDENCE_BUCKET_RANGES.
# NOTE: this groups "no confidence" pixels with the highest confidence band.
DEFAULT_CONFIDENCE_BUCKET = 0

# Number of worker threads used to classify columns of the output tensor.
# 1 keeps the classification pass sequential.
SEGMENTATION_WORKERS = int(os.getenv("SEGMENTATION_WORKERS", "1"))


# --- Stage 2: Rendering ---

# Global opacity of the segmentation mask when blended onto the source image.
OVERLAY_ALPHA = 0.5

# Perceived brightness (0-255) at or above which legend text is drawn in black.
LEGEND_LIGHT_THRESHOLD = 128


# --- Label Assets ---

# Optional JSON files overriding the built-in label tables.
TISSUE_LABELS_PATH = os.getenv("TISSUE_LABELS_PATH")
CONFIDENCE_LABELS_PATH = os.getenv("CONFIDENCE_LABELS_PATH")

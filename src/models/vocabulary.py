"""
Candidate vocabulary: the closed set of COCO labels the detector can emit,
grouped the way the filter panel presents them.
"""

from __future__ import annotations

from typing import Dict, List, Optional

OBJECT_CATEGORIES: Dict[str, List[str]] = {
    "People & Body": ["person"],
    "Animals": ["bird", "cat", "dog", "horse", "sheep", "cow", "elephant", "bear", "zebra", "giraffe"],
    "Vehicles": ["bicycle", "car", "motorcycle", "airplane", "bus", "train", "truck", "boat"],
    "Traffic & Outdoor": ["traffic light", "fire hydrant", "stop sign", "parking meter", "bench"],
    "Accessories": ["backpack", "umbrella", "handbag", "tie", "suitcase"],
    "Sports": [
        "frisbee", "skis", "snowboard", "sports ball", "kite",
        "baseball bat", "baseball glove", "skateboard", "surfboard", "tennis racket",
    ],
    "Kitchen & Dining": ["bottle", "wine glass", "cup", "fork", "knife", "spoon", "bowl"],
    "Food": ["banana", "apple", "sandwich", "orange", "broccoli", "carrot", "hot dog", "pizza", "donut", "cake"],
    "Furniture": ["chair", "couch", "potted plant", "bed", "dining table", "toilet"],
    "Electronics": [
        "tv", "laptop", "mouse", "remote", "keyboard", "cell phone",
        "microwave", "oven", "toaster", "sink", "refrigerator",
    ],
    "Household": ["book", "clock", "vase", "scissors", "teddy bear", "hair drier", "toothbrush"],
}

ALL_LABELS: List[str] = [label for labels in OBJECT_CATEGORIES.values() for label in labels]


def category_labels(name: str) -> Optional[List[str]]:
    """Return the labels of a category, or None if the category is unknown."""
    labels = OBJECT_CATEGORIES.get(name)
    return list(labels) if labels is not None else None


def is_known_label(label: str) -> bool:
    return label in ALL_LABELS

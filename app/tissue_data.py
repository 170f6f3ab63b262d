# Wound bed tissue classes produced by the segmentation model.
# The order is the model's output channel order and must not change:
# index i of the probability tensor's class axis is TISSUE_LABELS[i].
# Colors follow the wound-assessment annotation scheme used to label the training set.

TISSUE_LABELS = [
    # Peri-wound
    ("Unhealthy Skin", (30, 73, 40)),
    ("Healthy Skin", (233, 130, 178)),

    # Healing tissue
    ("Epithelising", (255, 20, 147)),
    ("Healthy Granulation", (0, 247, 114)),
    ("Unhealthy Granulation", (13, 224, 229)),

    # Non-viable tissue
    ("Slough", (255, 255, 0)),
    ("Necrosis", (170, 110, 40)),

    # Exposed deep structures
    ("Muscle", (179, 39, 62)),
    ("Tendon", (214, 188, 103)),
    ("Fascia", (144, 127, 233)),
    ("Bone", (226, 226, 185)),

    # Anything else in the wound bed
    ("Others", (30, 144, 255)),
]

# Confidence bands, most confident first. Index i is confidence bucket i
# (see CONFIDENCE_BUCKET_RANGES in config.py).
# High bands share a dark blue, the lowest three share a lime green so that
# the confidence map reads as "trust / check / doubt" at a glance.
CONFIDENCE_LABELS = [
    ("91%-100%", (36, 101, 144)),
    ("81%-90%", (36, 101, 144)),
    ("71%-80%", (36, 101, 144)),
    ("61%-70%", (61, 172, 247)),
    ("51%-60%", (121, 214, 249)),
    ("41%-50%", (232, 122, 164)),
    ("31%-40%", (249, 217, 140)),
    ("21%-30%", (184, 226, 51)),
    ("11%-20%", (184, 226, 51)),
    ("1%-10%", (184, 226, 51)),
]

import numpy as np
import pytest
from PIL import Image

from app.errors import TensorReadError
from app.services.color_palette import confidence_label_table, tissue_label_table
from app.services.image_preprocess_service import PreprocessStrategy
from app.services.segmentation_map_builder import SegmentationMapBuilder
from app.services.segmentation_service import SegmentationService, segmentation_service
from app.services.tensor_accessor import TensorAccessor


def test_end_to_end_small_tensor(wound_tensor):
    source = Image.new("RGB", (8, 8), (200, 100, 0))

    result = segmentation_service.run_array(source, wound_tensor)

    assert result.class_indices == [0, 2]
    assert result.confidence_indices == [0, 1, 2, 6]
    assert list(result.color_legend.items()) == [
        (tissue_label_table[0].name, tissue_label_table[0].color),
        (tissue_label_table[2].name, tissue_label_table[2].color),
    ]
    assert list(result.confidence_color_legend) == ["91%-100%", "81%-90%", "71%-80%", "31%-40%"]

    assert result.segmented_image.size == (2, 2)
    assert result.original_image.size == (2, 2)
    assert result.overlay_image.size == (2, 2)
    assert result.confidence_overlay_image.size == (2, 2)

    # Buffer offset x * height + y lands (x=0, y=1) at row 0, column 1
    assert result.segmented_image.pixel(1, 0) == tissue_label_table.packed_color(2)
    assert result.confidence_segmented_image.pixel(0, 1) == confidence_label_table.packed_color(6)


def test_overlay_blends_with_prepared_source(wound_tensor):
    source = Image.new("RGB", (8, 4), (200, 100, 0))
    result = segmentation_service.run_array(source, wound_tensor)

    mask_color = tissue_label_table[0].color
    pixel = result.overlay_image.getpixel((0, 0))
    for channel, src, mask in zip(pixel, (200, 100, 0), mask_color[:3]):
        assert abs(channel - (src + mask) / 2) <= 2


def test_model_output_with_batch_dimension(wound_tensor):
    source = Image.new("RGB", (2, 2))
    result = segmentation_service.run_array(source, wound_tensor[np.newaxis, ...])
    assert result.class_indices == [0, 2]


def test_result_is_immutable(wound_tensor):
    result = segmentation_service.run_array(Image.new("RGB", (2, 2)), wound_tensor)
    with pytest.raises(Exception):
        result.color_legend = {}


def test_read_failure_propagates():
    class BrokenAccessor(TensorAccessor):
        width = 2
        height = 2
        class_count = 3

        def get_value(self, x, y, class_index):
            return None if (x, y) == (1, 1) else 0.5

    service = SegmentationService(builder=SegmentationMapBuilder(workers=1))
    with pytest.raises(TensorReadError):
        service.run(Image.new("RGB", (2, 2)), BrokenAccessor())


def test_pad_strategy_letterboxes_source(wound_tensor):
    source = Image.new("RGB", (4, 2), (255, 0, 0))

    cropped = segmentation_service.run_array(source, wound_tensor)
    padded = segmentation_service.run_array(source, wound_tensor, strategy=PreprocessStrategy.PAD)

    assert cropped.original_image.size == padded.original_image.size == (2, 2)
    assert cropped.original_image.getpixel((0, 0)) == (255, 0, 0)
    # Black bars above and below the photo darken the resized pixels
    assert padded.original_image.getpixel((0, 0))[0] < 255

"""Tests for the PNG codec adapter."""

import numpy as np
import pytest
from PIL import Image

from depth_dither.core.codec import CodecError, RasterImage, decode, encode


def _save(tmp_path, img, name="in.png", **kwargs):
    path = tmp_path / name
    img.save(str(path), **kwargs)
    return path


class TestRasterImage:
    def test_valid(self):
        image = RasterImage(width=3, height=2, pixels=np.zeros((6, 4), dtype=np.uint8))
        assert image.pixel_count == 6

    def test_shape_mismatch(self):
        with pytest.raises(ValueError, match="does not match"):
            RasterImage(width=3, height=2, pixels=np.zeros((5, 4), dtype=np.uint8))

    def test_wrong_dtype(self):
        with pytest.raises(ValueError, match="uint8"):
            RasterImage(width=1, height=1, pixels=np.zeros((1, 4), dtype=np.int32))

    def test_to_pil(self):
        pixels = np.array([[1, 2, 3, 4], [5, 6, 7, 8]], dtype=np.uint8)
        img = RasterImage(width=2, height=1, pixels=pixels).to_pil()
        assert img.mode == "RGBA"
        assert img.size == (2, 1)
        assert img.getpixel((1, 0)) == (5, 6, 7, 8)


class TestDecode:
    def test_rgba(self, tmp_path):
        img = Image.new("RGBA", (3, 2), (10, 20, 30, 40))
        img.putpixel((2, 1), (200, 100, 50, 0))
        image = decode(_save(tmp_path, img))

        assert (image.width, image.height) == (3, 2)
        assert image.pixels.shape == (6, 4)
        assert image.pixels[0].tolist() == [10, 20, 30, 40]
        # Row-major: (x=2, y=1) is the last pixel
        assert image.pixels[5].tolist() == [200, 100, 50, 0]

    def test_rgb_gets_opaque_alpha(self, tmp_path):
        image = decode(_save(tmp_path, Image.new("RGB", (2, 2), (1, 2, 3))))
        assert image.pixels.tolist() == [[1, 2, 3, 255]] * 4

    def test_greyscale_expands(self, tmp_path):
        image = decode(_save(tmp_path, Image.new("L", (1, 1), 77)))
        assert image.pixels.tolist() == [[77, 77, 77, 255]]

    def test_sixteen_bit_greyscale_keeps_high_byte(self, tmp_path):
        wide = np.array([[0, 0xFFFF, 0x1234]], dtype=np.uint16)
        image = decode(_save(tmp_path, Image.fromarray(wide)))
        assert image.pixels[:, 0].tolist() == [0, 255, 0x12]
        assert image.pixels[:, 3].tolist() == [255, 255, 255]

    def test_sixteen_bit_greyscale_transparency_key(self, tmp_path):
        """Only the exact 16-bit key is transparent, not its whole high byte."""
        wide = np.array([[0x1234, 0x12FF]], dtype=np.uint16)
        path = _save(tmp_path, Image.fromarray(wide), transparency=0x1234)
        image = decode(path)
        assert image.pixels.tolist() == [[0x12, 0x12, 0x12, 0], [0x12, 0x12, 0x12, 255]]

    def test_palette_with_transparency(self, tmp_path):
        img = Image.new("P", (2, 1))
        img.putpalette([255, 0, 0, 0, 0, 255])
        img.putpixel((0, 0), 0)
        img.putpixel((1, 0), 1)
        image = decode(_save(tmp_path, img, transparency=1))
        assert image.pixels.tolist() == [[255, 0, 0, 255], [0, 0, 255, 0]]

    def test_greyscale_with_alpha(self, tmp_path):
        image = decode(_save(tmp_path, Image.new("LA", (1, 1), (77, 128))))
        assert image.pixels.tolist() == [[77, 77, 77, 128]]

    def test_buffer_is_writable(self, tmp_path):
        image = decode(_save(tmp_path, Image.new("RGBA", (2, 2))))
        image.pixels[0] = (9, 9, 9, 9)
        assert image.pixels[0].tolist() == [9, 9, 9, 9]

    def test_missing_file(self, tmp_path):
        with pytest.raises(CodecError, match="Error decoding file"):
            decode(tmp_path / "missing.png")

    def test_not_png(self, tmp_path):
        path = _save(tmp_path, Image.new("RGB", (2, 2)), name="in.bmp")
        with pytest.raises(CodecError, match="not a PNG"):
            decode(path)

    def test_garbage(self, tmp_path):
        path = tmp_path / "garbage.png"
        path.write_bytes(b"definitely not an image")
        with pytest.raises(CodecError, match="Error decoding file"):
            decode(path)


class TestEncode:
    def test_roundtrip(self, tmp_path):
        pixels = np.arange(24, dtype=np.uint8).reshape(6, 4)
        path = tmp_path / "out.png"
        encode(path, RasterImage(width=2, height=3, pixels=pixels))

        with Image.open(path) as img:
            assert img.format == "PNG"
            assert img.mode == "RGBA"
            assert img.size == (2, 3)
        assert np.array_equal(decode(path).pixels, pixels)

    def test_png_regardless_of_extension(self, tmp_path):
        path = tmp_path / "out.dat"
        encode(path, RasterImage(width=1, height=1, pixels=np.zeros((1, 4), dtype=np.uint8)))
        with Image.open(path) as img:
            assert img.format == "PNG"

    def test_empty_image_rejected(self, tmp_path):
        path = tmp_path / "empty.png"
        with pytest.raises(CodecError, match="zero width or height"):
            encode(path, RasterImage(width=0, height=4, pixels=np.zeros((0, 4), dtype=np.uint8)))
        assert not path.exists()

    def test_unwritable_path(self, tmp_path):
        path = tmp_path / "no_such_dir" / "out.png"
        image = RasterImage(width=1, height=1, pixels=np.zeros((1, 4), dtype=np.uint8))
        with pytest.raises(CodecError, match="Error encoding file"):
            encode(path, image)

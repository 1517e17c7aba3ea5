from page_images.models import ImageRecord


def test_to_dict_uses_camel_case_mime_type():
    record = ImageRecord(src="https://x/a.png", size=12, mime_type="image/png")
    assert record.to_dict() == {
        "src": "https://x/a.png",
        "size": 12,
        "mimeType": "image/png",
        "width": 0,
        "height": 0,
        "decoded": False,
    }


def test_mark_decoded_coerces_dimensions():
    record = ImageRecord(src="https://x/a.png", size=0, mime_type="image/png")
    record.mark_decoded(640.0, "480")
    assert (record.width, record.height, record.decoded) == (640, 480, True)


def test_mark_decoded_clamps_garbage_to_zero():
    record = ImageRecord(src="https://x/a.svg", size=0, mime_type="image/svg+xml")
    record.mark_decoded(None, -3)
    assert (record.width, record.height, record.decoded) == (0, 0, True)


def test_key_is_src_and_mime_type():
    assert ImageRecord(src="s", size=1, mime_type="m").key == ("s", "m")

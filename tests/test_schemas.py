import pytest

from impressions.schemas import GalleryImage, Inquiry, Record


def test_record_base_cannot_be_instantiated():
    with pytest.raises(TypeError):
        Record(id="x")


def test_every_record_type_decodes():
    image = GalleryImage.from_backend({"objectId": "a", "title": "One", "imagePath": "/one.jpg"})
    inquiry = Inquiry.from_backend({
        "objectId": "b",
        "name": "Amy",
        "phone": "1",
        "message": "Hi",
        "createdAt": {"__type": "Date", "iso": "2026-03-01T10:00:00.000Z"},
    })

    assert image.order == 0 and image.featured is False
    assert inquiry.status == "new"
    assert inquiry.created_at.year == 2026

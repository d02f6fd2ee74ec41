import pytest

from impressions.backend.base import BackendSession
from impressions.data_access import DataAccess, gather_sections
from impressions.exceptions import RecordNotFound
from impressions.schemas import (
    GalleryImage,
    InquiryStatus,
    InquirySubmission,
    Service,
    Testimonial,
)


@pytest.fixture
async def data(backend):
    backend.add_user("admin", "pw")
    access = DataAccess(backend)
    await access.login("admin", "pw")
    return access


def image(title, order, category="Framed"):
    return GalleryImage(title=title, category=category, image_path=f"/images/{title}.jpg", order=order)


async def test_gallery_images_come_back_in_ascending_order(data):
    for title, order in [("c", 3), ("a", 1), ("b", 2)]:
        await data.save_gallery_image(image(title, order))

    images = await data.get_gallery_images()
    assert [i.order for i in images] == [1, 2, 3]
    assert [i.title for i in images] == ["a", "b", "c"]


async def test_save_without_id_creates_and_with_id_updates_in_place(data):
    image_id = await data.save_gallery_image(image("first", 1))
    images = await data.get_gallery_images()
    assert len(images) == 1 and images[0].id == image_id

    updated = images[0].model_copy(update={"title": "renamed", "featured": True})
    assert await data.save_gallery_image(updated) == image_id

    images = await data.get_gallery_images()
    assert len(images) == 1
    assert images[0].title == "renamed"
    assert images[0].featured is True


async def test_service_and_testimonial_round_trip(data):
    await data.save_service(Service(title="Framed", image_path="/s.jpg", order=2, active=False))
    await data.save_testimonial(Testimonial(name="Sarah", location="Leeds", message="Lovely", rating=4))

    services = await data.get_services()
    testimonials = await data.get_testimonials()
    assert services[0].title == "Framed" and services[0].active is False
    assert testimonials[0].rating == 4 and testimonials[0].active is True


async def test_delete_missing_record_raises_not_found(data):
    with pytest.raises(RecordNotFound):
        await data.delete_service("nope")


async def test_create_inquiry_forces_new_status_and_anonymous_write(data, backend):
    submission = InquirySubmission(name="Amy", phone="0123", message="Hi", status="booked")
    inquiry_id = await data.create_inquiry(submission)

    stored = backend.classes["Inquiry"][inquiry_id]
    assert stored["status"] == "new"
    assert ("create", "Inquiry", None) in backend.calls


async def test_inquiries_newest_first(data):
    for name in ["first", "second", "third"]:
        await data.create_inquiry(InquirySubmission(name=name, phone="1", message="m"))

    inquiries = await data.get_inquiries()
    assert [i.name for i in inquiries] == ["third", "second", "first"]


async def test_update_inquiry_status_patches_only_status_and_notes(data, backend):
    inquiry_id = await data.create_inquiry(
        InquirySubmission(name="Amy", phone="0123", email="amy@example.com", message="Hi")
    )

    await data.update_inquiry_status(inquiry_id, InquiryStatus.CONTACTED)
    stored = backend.classes["Inquiry"][inquiry_id]
    assert stored["status"] == "contacted"
    assert stored["notes"] is None
    assert stored["email"] == "amy@example.com"

    await data.update_inquiry_status(inquiry_id, InquiryStatus.BOOKED, notes="Booked for Friday")
    stored = backend.classes["Inquiry"][inquiry_id]
    assert stored["status"] == "booked"
    assert stored["notes"] == "Booked for Friday"
    assert stored["message"] == "Hi"


async def test_writes_carry_the_session(data, backend):
    await data.save_gallery_image(image("x", 1))
    assert backend.calls[-1] == ("create", "GalleryImage", data.session.token)


async def test_is_authenticated_without_session_makes_no_call(backend):
    access = DataAccess(backend)
    assert await access.is_authenticated() is False
    assert access.get_current_user() is None


async def test_is_authenticated_rejects_revoked_session(data, backend):
    assert await data.is_authenticated() is True
    assert data.get_current_user().username == "admin"

    backend.revoke_all_sessions()
    assert data.get_current_user() is not None
    assert await data.is_authenticated() is False
    assert data.get_current_user() is None


async def test_is_authenticated_with_unknown_token(backend):
    access = DataAccess(backend, BackendSession(token="forged"))
    assert await access.is_authenticated() is False


async def test_logout_clears_session(data, backend):
    token = data.session.token
    await data.logout()
    assert data.session is None
    assert token not in backend.sessions


async def test_malformed_record_is_left_out(data, backend):
    await data.save_testimonial(Testimonial(name="Sarah", message="Lovely", order=1))
    backend.classes["Testimonial"]["bad"] = {
        "objectId": "bad", "name": "X", "message": "Y", "rating": 9, "order": 0,
    }

    testimonials = await data.get_testimonials()
    assert [t.name for t in testimonials] == ["Sarah"]


async def test_gallery_image_without_path_does_not_hide_the_others(data, backend):
    await data.save_gallery_image(image("good", 0))
    backend.classes["GalleryImage"]["bad"] = {"objectId": "bad", "title": "Broken upload", "order": 1}

    images = await data.get_gallery_images()
    assert [i.title for i in images] == ["good"]


async def test_decoding_applies_defaults(data, backend):
    backend.classes["GalleryImage"]["raw"] = {
        "objectId": "raw",
        "title": "Legacy",
        "imageFile": {"__type": "File", "url": "https://files.example.com/legacy.jpg"},
        "order": 0,
    }
    [legacy] = await data.get_gallery_images()
    assert legacy.image_path == "https://files.example.com/legacy.jpg"
    assert legacy.featured is False
    assert legacy.category == "Framed"


async def test_gather_sections_isolates_failures(data, backend):
    await data.save_service(Service(title="Framed", image_path="/s.jpg"))
    backend.failing.add("Testimonial")

    results, errors = await gather_sections(
        services=data.get_services(),
        testimonials=data.get_testimonials(),
    )

    assert errors == ["testimonials"]
    assert results["testimonials"] is None
    assert [s.title for s in results["services"]] == ["Framed"]


async def test_delete_inquiry(data, backend):
    inquiry_id = await data.create_inquiry(InquirySubmission(name="Amy", phone="1", message="m"))
    await data.delete_inquiry(inquiry_id)
    assert await data.get_inquiries() == []

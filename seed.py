#!/usr/bin/env python3
"""
Backend Setup Script
Creates the admin user and the sample gallery, services and testimonials
in the configured backend.

Usage:
  python seed.py                       - Create admin user and sample content
  python seed.py --admin-only          - Only create the admin user
  python seed.py --username <name>     - Use a different admin username
"""
import argparse
import asyncio
import getpass
import sys

from impressions.backend.base import USERNAME_TAKEN
from impressions.backend.factory import create_backend
from impressions.config import settings
from impressions.data_access import DataAccess
from impressions.exceptions import BackendError, ConfigurationError, QueryError
from impressions.schemas import (
    GalleryImage,
    InquiryStatus,
    InquirySubmission,
    Service,
    Testimonial,
)

GALLERY_ITEMS = [
    ("Newborn Hand & Foot", "Framed", "/gallery/impression-1.jpg", True),
    ("Tiny Feet Impression", "Premium", "/gallery/impression-2.jpg", False),
    ("Baby Hand Print", "Framed", "/gallery/impression-3.jpg", False),
    ("Twin Impressions", "Special", "/gallery/impression-4.jpg", False),
    ("Family Keepsake", "Premium", "/gallery/impression-5.jpg", True),
    ("Deluxe Frame Set", "Premium", "/gallery/impression-6.jpg", False),
    ("First Month Memories", "Special", "/gallery/impression-7.jpg", False),
    ("Sibling Impressions", "Framed", "/gallery/impression-8.jpg", True),
    ("Golden Frame Edition", "Premium", "/gallery/impression-9.jpg", False),
    ("3D Clay Impression", "Special", "/gallery/impression-10.jpg", False),
    ("Heart Shape Frame", "Framed", "/gallery/impression-11.jpg", False),
    ("Wall Display Set", "Premium", "/gallery/impression-12.jpg", False),
]

SERVICES = [
    ("Hand Impressions", "Beautiful hand impressions of your little one", "/services/hand-impression.jpg"),
    ("Foot Impressions", "Capture those tiny feet forever", "/services/foot-impression.jpg"),
    ("Framed Keepsakes", "Premium framed impressions for your home", "/services/framed-keepsake.jpg"),
]

TESTIMONIALS = [
    ("Priya & Rajesh", "Kakinada",
     "The impression turned out absolutely beautiful. A perfect keepsake of our little one!"),
    ("Lakshmi", "Rajahmundry",
     "Raju's work is incredible. The attention to detail and care shown was exceptional."),
    ("Sravani & Kiran", "Visakhapatnam",
     "We ordered for our twins and the result exceeded our expectations. Highly recommend!"),
]


async def create_admin_user(data: DataAccess, username: str, password: str, email: str) -> None:
    print("👤 Creating admin user...")
    try:
        await data.backend.sign_up(username, password, email or None)
        print(f"   ✓ Admin user created: {username}")
    except QueryError as e:
        if e.code != USERNAME_TAKEN:
            raise
        print("   ✓ Admin user already exists")


async def create_content(data: DataAccess) -> None:
    print("\n🖼️  Creating gallery images...")
    created = 0
    for order, (title, category, image_path, featured) in enumerate(GALLERY_ITEMS):
        try:
            await data.save_gallery_image(GalleryImage(
                title=title, category=category, image_path=image_path, featured=featured, order=order
            ))
            created += 1
        except BackendError as e:
            print(f"   ✗ Failed to create \"{title}\": {e.message}")
    print(f"   ✓ Created {created} gallery images")

    print("\n📋 Creating services...")
    created = 0
    for order, (title, description, image_path) in enumerate(SERVICES):
        try:
            await data.save_service(Service(
                title=title, description=description, image_path=image_path, order=order, active=True
            ))
            created += 1
        except BackendError as e:
            print(f"   ✗ Failed to create \"{title}\": {e.message}")
    print(f"   ✓ Created {created} services")

    print("\n⭐ Creating testimonials...")
    created = 0
    for order, (name, location, message) in enumerate(TESTIMONIALS):
        try:
            await data.save_testimonial(Testimonial(
                name=name, location=location, message=message, rating=5, active=True, order=order
            ))
            created += 1
        except BackendError as e:
            print(f"   ✗ Failed to create testimonial from \"{name}\": {e.message}")
    print(f"   ✓ Created {created} testimonials")

    print("\n📬 Creating sample enquiry...")
    try:
        inquiry_id = await data.create_inquiry(InquirySubmission(
            name="Sample Enquiry",
            phone="9876543210",
            email="sample@example.com",
            message="This is a sample enquiry.",
            service="Hand Impressions",
        ))
        await data.update_inquiry_status(
            inquiry_id, InquiryStatus.COMPLETED, "This is a sample - you can delete this entry."
        )
        print("   ✓ Sample enquiry created")
    except BackendError as e:
        print(f"   ✗ Failed to create sample enquiry: {e.message}")


async def run(username: str, email: str, admin_only: bool) -> int:
    try:
        backend = create_backend(settings)
    except ConfigurationError as e:
        print(f"❌ {str(e)}")
        return 1

    password = getpass.getpass(f"Enter password for admin '{username}': ")
    if not password:
        print("\n❌ Error: Password cannot be empty")
        return 1

    data = DataAccess(backend)
    try:
        await create_admin_user(data, username, password, email)
        if not admin_only:
            # Content writes need the admin session
            await data.login(username, password)
            await create_content(data)
            await data.logout()
    except BackendError as e:
        print(f"\n❌ Setup failed: {e.message}")
        return 1
    finally:
        await backend.close()

    print("\n✅ Backend setup completed successfully!")
    print(f"   Login at /admin/login with username: {username}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Create the admin user and sample content")
    parser.add_argument("--username", default="admin")
    parser.add_argument("--email", default="")
    parser.add_argument("--admin-only", action="store_true")
    args = parser.parse_args()

    sys.exit(asyncio.run(run(args.username, args.email, args.admin_only)))


if __name__ == "__main__":
    main()

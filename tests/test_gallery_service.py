"""
Tests for gallery lookup, creation and editing.
"""

import pytest

from profile_sync.errors import ConflictError, NotFoundError, ValidationError
from profile_sync.services.gallery_service import GalleryService

GALLERY = {
    "id": 5,
    "user": {"id": 42},
    "images": [
        {"id": 1, "image": "a.jpg"},
        {"id": 2, "image": "b.jpg"},
    ],
}


@pytest.fixture
def gallery(client):
    return GalleryService(client)


class TestLookup:
    """The three lookup strategies, tried in order."""

    def test_mine_endpoint(self, gallery, session):
        session.add("GET", "/api/galleries/me", body=GALLERY)

        found = gallery.find_gallery()

        assert found.id == 5
        assert [img.id for img in found.images] == [1, 2]
        assert session.calls("GET", "/api/galleries") == []

    def test_filtered_query(self, gallery, session):
        session.add("GET", "/api/users/me", body={"id": 42})
        session.add("GET", "/api/galleries", body={"hydra:member": [GALLERY]})

        assert gallery.find_gallery().id == 5
        assert session.calls("GET", "/api/galleries")[0].params == {"user": 42}

    def test_full_scan_matches_owner(self, gallery, session):
        session.add("GET", "/api/users/me", body={"id": 42})
        session.add("GET", "/api/galleries", body=[])
        session.add("GET", "/api/galleries", body=[
            {"id": 1, "user": {"id": 7}, "images": []},
            {"id": 9, "user": {"id": 42}, "images": []},
        ])

        assert gallery.find_gallery().id == 9
        filtered, scan = session.calls("GET", "/api/galleries")
        assert filtered.params == {"user": 42}
        assert scan.params is None

    def test_filtered_query_ignored_by_server(self, gallery, session):
        session.add("GET", "/api/users/me", body={"id": 5})
        session.add("GET", "/api/galleries", body=[
            {"id": 1, "user": {"id": 9}, "images": []},
            {"id": 2, "user": {"id": 5}, "images": []},
        ])

        found = gallery.find_gallery()

        assert found.id == 2
        assert found.owner_id == 5

    def test_filtered_query_only_foreign_galleries(self, gallery, session):
        session.add("GET", "/api/users/me", body={"id": 5})
        session.add("GET", "/api/galleries", body=[{"id": 1, "user": {"id": 9}, "images": []}])

        assert gallery.find_gallery() is None
        assert len(session.calls("GET", "/api/galleries")) == 2

    def test_absent(self, gallery, session):
        session.add("GET", "/api/users/me", body={"id": 42})
        session.add("GET", "/api/galleries", body=[])

        assert gallery.find_gallery() is None

    def test_unknown_owner(self, gallery, session):
        session.add("GET", "/api/users/me", status=500)
        assert gallery.find_gallery() is None


class TestCreate:
    """Lazy creation and lost creation races."""

    def test_creates_when_absent(self, gallery, session):
        session.add("GET", "/api/users/me", body={"id": 42})
        session.add("GET", "/api/galleries", body=[])
        session.add("POST", "/api/galleries", status=201, body={"id": 3, "images": []})

        assert gallery.get_or_create_gallery_id() == 3
        assert session.calls("POST", "/api/galleries")[0].json == {"images": []}

    @pytest.mark.parametrize("status", [409, 422])
    def test_conflict_runs_lookup_again(self, gallery, session, status):
        session.add("GET", "/api/galleries/me", status=404)
        session.add("GET", "/api/galleries/me", body=GALLERY)
        session.add("GET", "/api/users/me", body={"id": 42})
        session.add("GET", "/api/galleries", body=[])
        session.add("POST", "/api/galleries", status=status, body={"detail": "exists"})

        assert gallery.get_or_create_gallery_id() == 5

    def test_conflict_without_gallery_raises(self, gallery, session):
        session.add("GET", "/api/users/me", body={"id": 42})
        session.add("GET", "/api/galleries", body=[])
        session.add("POST", "/api/galleries", status=409)

        with pytest.raises(ConflictError):
            gallery.get_or_create_gallery_id()


class TestAddImages:
    """Multipart uploads with per-file validation."""

    def test_skips_invalid_files(self, gallery, session, png_file, tmp_path):
        notes = tmp_path / "notes.txt"
        notes.write_text("not an image")
        session.add("GET", "/api/galleries/me", body=GALLERY)
        session.add("POST", "/api/galleries/5/upload-photo", body=GALLERY)

        added = gallery.add_images([png_file, notes, tmp_path / "missing.jpg"])

        assert added == 1
        upload = session.calls("POST", "/api/galleries/5/upload-photo")[0]
        assert [f[0] for f in upload.files] == ["imageFile[]"]
        assert upload.files[0][1][0] == "work.png"

    def test_skips_oversized_files(self, gallery, session, png_file, settings):
        settings.max_gallery_image_bytes = 16

        with pytest.raises(ValidationError):
            gallery.add_images([png_file])
        assert session.sent == []

    def test_stale_gallery_is_recreated_once(self, gallery, session, png_file):
        session.add("GET", "/api/galleries/me", body=GALLERY)
        session.add("POST", "/api/galleries", status=201, body={"id": 6, "images": []})
        session.add("POST", "/api/galleries/6/upload-photo", body={"id": 6})

        assert gallery.add_images([png_file]) == 1
        assert len(session.calls("POST", "/api/galleries/5/upload-photo")) == 1
        assert len(session.calls("POST", "/api/galleries/6/upload-photo")) == 1


class TestRemove:
    """Removal re-submits the whole image list."""

    def test_remove_one(self, gallery, session):
        session.add("GET", "/api/galleries/me", body=GALLERY)
        session.add("PATCH", "/api/galleries/5", body=GALLERY)

        assert gallery.remove_image(1) is True
        assert session.calls("PATCH", "/api/galleries/5")[0].json == {"images": [{"image": "b.jpg"}]}

    def test_remove_unknown_image(self, gallery, session):
        session.add("GET", "/api/galleries/me", body=GALLERY)

        assert gallery.remove_image("77") is False
        assert session.calls("PATCH") == []

    def test_remove_all(self, gallery, session):
        session.add("GET", "/api/galleries/me", body=GALLERY)
        session.add("PATCH", "/api/galleries/5", body={"id": 5, "images": []})

        gallery.remove_all()
        assert session.calls("PATCH", "/api/galleries/5")[0].json == {"images": []}

    def test_no_gallery(self, gallery, session):
        session.add("GET", "/api/users/me", body={"id": 42})
        session.add("GET", "/api/galleries", body=[])

        with pytest.raises(NotFoundError):
            gallery.remove_all()


class TestImages:
    """URL resolution and reachability checks."""

    @pytest.mark.parametrize("path,url", [
        ("https://cdn.test/x.jpg", "https://cdn.test/x.jpg"),
        ("/uploads/x.jpg", "https://api.test/uploads/x.jpg"),
        ("x.jpg", "https://api.test/images/gallery_photos/x.jpg"),
        ("", "../fonTest6.png"),
    ])
    def test_image_url(self, gallery, path, url):
        assert gallery.image_url(path) == url

    def test_unreachable_images_use_placeholder(self, gallery, session):
        session.add("GET", "/api/galleries/me", body=GALLERY)
        session.add("HEAD", "/images/gallery_photos/a.jpg")

        examples = gallery.work_examples()

        assert [e.image for e in examples] == [
            "https://api.test/images/gallery_photos/a.jpg",
            "../fonTest6.png",
        ]
        assert [e.id for e in examples] == ["1", "2"]

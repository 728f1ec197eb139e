import io
from datetime import datetime, timedelta, timezone
import pytest
from PIL import Image
from botocore.exceptions import ClientError, NoCredentialsError

from app.image_service import service
from app.image_service.cache import ResultCache
from app.image_service.models import CacheKey, LAST_N, LAST_ONE
from app.exceptions import NoImagesFound, PresignError, TransportError, DecodeError

T1 = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
T2 = T1 + timedelta(hours=1)


def make_png_bytes(size=(10, 10)):
    """Generate a simple valid PNG in-memory."""
    img = Image.new("RGB", size, color="red")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def obj(key, modified=T1, size=10):
    return {"Key": key, "Size": size, "LastModified": modified}


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mock_s3(mocker):
    s3 = mocker.Mock()
    s3.generate_presigned_url.side_effect = lambda key, expires_in: f"https://signed/{key}?e={expires_in}"
    return s3


@pytest.fixture
def photos(mock_s3, clock):
    svc = service.PhotoFetchService(mock_s3, ResultCache(ttl=300, sweep_interval=600, timer=clock), max_workers=4)
    yield svc
    svc.close()


# ------------------------------
# get_last_x_photos_for_user
# ------------------------------

def test_last_x_photos_sorted_presigned_and_filtered(photos, mock_s3):
    mock_s3.list_objects_page.return_value = (
        [obj("user_u1/a.txt"), obj("user_u1/b.png", T2), obj("user_u1/c.jpg", T1)], None, True
    )

    result = photos.get_last_x_photos_for_user("u1", 2)

    assert [r.key for r in result] == ["user_u1/b.png", "user_u1/c.jpg"]
    assert [r.url for r in result] == [
        "https://signed/user_u1/b.png?e=3600",
        "https://signed/user_u1/c.jpg?e=3600",
    ]
    mock_s3.list_objects_page.assert_called_once_with("user_u1/", None)


def test_last_x_photos_fewer_than_requested(photos, mock_s3):
    mock_s3.list_objects_page.return_value = ([obj("user_u1/only.png")], None, True)

    result = photos.get_last_x_photos_for_user("u1", 3)

    assert len(result) == 1


def test_last_x_photos_cached_until_ttl(photos, mock_s3, clock):
    mock_s3.list_objects_page.return_value = ([obj("user_u1/a.png")], None, True)

    first = photos.get_last_x_photos_for_user("u1", 3)
    clock.now += 299
    second = photos.get_last_x_photos_for_user("u1", 3)
    assert first == second
    assert mock_s3.list_objects_page.call_count == 1

    clock.now += 1
    photos.get_last_x_photos_for_user("u1", 3)
    assert mock_s3.list_objects_page.call_count == 2


def test_last_x_photos_presign_failure_not_cached(photos, mock_s3):
    mock_s3.list_objects_page.return_value = (
        [obj(f"user_u1/{i}.png", T1 + timedelta(minutes=i)) for i in range(5)], None, True
    )

    def sign(key, expires_in):
        if key == "user_u1/2.png":
            raise NoCredentialsError()
        return f"https://signed/{key}"

    mock_s3.generate_presigned_url.side_effect = sign

    with pytest.raises(PresignError):
        photos.get_last_x_photos_for_user("u1", 5)
    assert photos.cache.get(CacheKey(LAST_N, "u1", 5)) is None


def test_last_x_photos_listing_failure(photos, mock_s3):
    mock_s3.list_objects_page.side_effect = ClientError(
        {"Error": {"Code": "InternalError", "Message": "boom"}}, "ListObjectsV2"
    )
    with pytest.raises(TransportError):
        photos.get_last_x_photos_for_user("u1", 2)
    assert len(photos.cache) == 0


def test_last_x_photos_cached_list_is_a_copy(photos, mock_s3):
    mock_s3.list_objects_page.return_value = ([obj("user_u1/a.png"), obj("user_u1/b.png")], None, True)

    first = photos.get_last_x_photos_for_user("u1", 2)
    first.clear()

    assert len(photos.get_last_x_photos_for_user("u1", 2)) == 2


# ------------------------------
# get_last_photo_for_user
# ------------------------------

def test_last_photo_cached_and_identical(photos, mock_s3, clock):
    mock_s3.list_objects_page.return_value = ([obj("user_u1/a.png", T1), obj("user_u1/b.png", T2)], None, True)

    first = photos.get_last_photo_for_user("u1")
    second = photos.get_last_photo_for_user("u1")

    assert first.key == "user_u1/b.png"
    assert first.url is not None
    assert second is first
    assert mock_s3.list_objects_page.call_count == 1
    assert mock_s3.generate_presigned_url.call_count == 1

    clock.now += 300
    photos.get_last_photo_for_user("u1")
    assert mock_s3.list_objects_page.call_count == 2
    assert mock_s3.generate_presigned_url.call_count == 2


def test_last_photo_has_own_cache_namespace(photos, mock_s3):
    mock_s3.list_objects_page.return_value = ([obj("user_u1/a.png")], None, True)

    photos.get_last_x_photos_for_user("u1", 1)
    photos.get_last_photo_for_user("u1")

    assert mock_s3.list_objects_page.call_count == 2
    assert isinstance(photos.cache.get(CacheKey(LAST_N, "u1", 1)), tuple)
    assert photos.cache.get(CacheKey(LAST_ONE, "u1", 1)).key == "user_u1/a.png"


def test_last_photo_no_images(photos, mock_s3):
    mock_s3.list_objects_page.return_value = ([obj("user_nouser/readme.md")], None, True)

    with pytest.raises(NoImagesFound):
        photos.get_last_photo_for_user("nouser")
    mock_s3.generate_presigned_url.assert_not_called()


# ------------------------------
# download_photo / download_small_photo
# ------------------------------

def test_download_photo(mocker):
    mock_s3 = mocker.Mock()
    mock_s3.download.return_value = b"bytes"
    assert service.download_photo(mock_s3, "k.png") == b"bytes"


def test_download_photo_missing_key(mocker):
    mock_s3 = mocker.Mock()
    mock_s3.download.side_effect = ClientError({"Error": {"Code": "NoSuchKey", "Message": "nope"}}, "GetObject")
    with pytest.raises(TransportError) as exc_info:
        service.download_photo(mock_s3, "missing.png")
    assert "missing.png" in exc_info.value.detail


def test_download_small_photo_resizes_to_png(mocker):
    mock_s3 = mocker.Mock()
    mock_s3.download.return_value = make_png_bytes((1600, 1200))

    data = service.download_small_photo(mock_s3, "k.png", size=(800, 600))

    img = Image.open(io.BytesIO(data))
    assert img.format == "PNG"
    assert img.size == (800, 600)


def test_download_small_photo_decodes_other_formats(mocker):
    buf = io.BytesIO()
    Image.new("L", (40, 30)).save(buf, format="JPEG")
    mock_s3 = mocker.Mock()
    mock_s3.download.return_value = buf.getvalue()

    data = service.download_small_photo(mock_s3, "k.jpg", size=(20, 15))

    assert Image.open(io.BytesIO(data)).size == (20, 15)


def test_download_small_photo_decode_error(mocker):
    mock_s3 = mocker.Mock()
    mock_s3.download.return_value = b"notanimage"

    with pytest.raises(DecodeError) as exc_info:
        service.download_small_photo(mock_s3, "k.png")
    assert exc_info.value.__cause__ is not None


def test_download_small_photo_oversized_image(mocker):
    mocker.patch.object(Image, "MAX_IMAGE_PIXELS", 100)
    mock_s3 = mocker.Mock()
    mock_s3.download.return_value = make_png_bytes((1600, 1200))

    with pytest.raises(DecodeError) as exc_info:
        service.download_small_photo(mock_s3, "huge.png")
    assert isinstance(exc_info.value.__cause__, Image.DecompressionBombError)

# accounts/tests/test_storage.py

from io import BytesIO
from unittest import mock

import pytest
from cloudinary.exceptions import Error as CloudinaryError

from accounts.storage import CloudinaryService, configure_cloudinary, extract_public_id
from vib3.exceptions import DependencyError


UPLOAD_RESULT = {
    'secure_url': 'https://res.cloudinary.com/demo/image/upload/v123/vib3/profiles/abc.webp',
    'public_id': 'vib3/profiles/abc',
    'width': 800,
    'height': 800,
    'format': 'webp',
    'bytes': 2048,
}


def test_extract_public_id():
    url = 'https://res.cloudinary.com/demo/image/upload/v1234567890/vib3/profiles/abc123.webp'
    assert extract_public_id(url) == 'vib3/profiles/abc123'
    assert extract_public_id('https://example.com/photo.jpg') is None
    assert extract_public_id('') is None


@mock.patch('cloudinary.uploader.upload')
def test_upload_success(upload):
    upload.return_value = UPLOAD_RESULT

    result = CloudinaryService().upload_image(BytesIO(b'image'))

    assert result['url'] == UPLOAD_RESULT['secure_url']
    assert result['public_id'] == 'vib3/profiles/abc'
    options = upload.call_args.kwargs
    assert options['folder'] == 'vib3/profiles'
    assert options['transformation'][0] == {'width': 800, 'height': 800, 'crop': 'fill', 'quality': 'auto'}
    assert options['transformation'][1] == {'fetch_format': 'webp'}


@mock.patch('accounts.storage.time.sleep')
@mock.patch('cloudinary.uploader.upload')
def test_upload_retries_then_succeeds(upload, sleep):
    upload.side_effect = [
        CloudinaryError('Socket error'),
        CloudinaryError('Server error'),
        UPLOAD_RESULT,
    ]

    result = CloudinaryService().upload_image(BytesIO(b'image'))

    assert result['public_id'] == 'vib3/profiles/abc'
    assert upload.call_count == 3
    assert [call.args[0] for call in sleep.call_args_list] == [2, 4]


@mock.patch('accounts.storage.time.sleep')
@mock.patch('cloudinary.uploader.upload')
def test_upload_gives_up(upload, sleep):
    upload.side_effect = CloudinaryError('timeout')

    with pytest.raises(DependencyError):
        CloudinaryService().upload_image(BytesIO(b'image'))

    assert upload.call_count == 3


@mock.patch('cloudinary.uploader.upload')
def test_upload_unconfigured(upload, settings):
    settings.CLOUDINARY_CLOUD_NAME = ''
    configure_cloudinary()

    with pytest.raises(DependencyError):
        CloudinaryService().upload_image(BytesIO(b'image'))

    upload.assert_not_called()


@mock.patch('cloudinary.uploader.destroy')
def test_delete(destroy):
    destroy.return_value = {'result': 'ok'}
    assert CloudinaryService().delete_image('vib3/profiles/abc') is True
    assert destroy.call_args.args[0] == 'vib3/profiles/abc'

    destroy.return_value = {'result': 'not found'}
    assert CloudinaryService().delete_image('vib3/profiles/abc') is False


@mock.patch('cloudinary.uploader.destroy')
def test_delete_transport_failure(destroy):
    destroy.side_effect = CloudinaryError('Socket error')

    with pytest.raises(DependencyError):
        CloudinaryService().delete_image('vib3/profiles/abc')

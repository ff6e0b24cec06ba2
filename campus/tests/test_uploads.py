import base64
import unittest
from unittest.mock import MagicMock, patch

import requests
from botocore.exceptions import ClientError

from campus.errors import UploadError
from campus.uploads import ImgbbImageUploader, S3ImageUploader, UploadedImage


def _response(payload, status_code=200):
    response = MagicMock()
    response.status_code = status_code
    response.json.return_value = payload
    if status_code >= 400:
        response.raise_for_status.side_effect = requests.HTTPError(str(status_code))
    return response


class ImgbbImageUploaderTests(unittest.TestCase):
    def setUp(self):
        self.uploader = ImgbbImageUploader(api_key="secret", timeout=5)

    @patch("campus.uploads.requests.post")
    def test_upload_returns_hosted_url(self, mock_post):
        mock_post.return_value = _response(
            {
                "success": True,
                "data": {
                    "url": "https://i.ibb.co/abc/photo.png",
                    "delete_url": "https://ibb.co/abc/del",
                },
            }
        )
        image = self.uploader.upload_image(b"raw", "photo.png")
        self.assertEqual(image.url, "https://i.ibb.co/abc/photo.png")
        self.assertEqual(image.delete_ref, "https://ibb.co/abc/del")

        kwargs = mock_post.call_args.kwargs
        self.assertEqual(kwargs["params"], {"key": "secret"})
        self.assertEqual(kwargs["data"]["image"], base64.b64encode(b"raw").decode())
        self.assertEqual(kwargs["timeout"], 5)

    @patch("campus.uploads.requests.post")
    def test_http_error_raises_upload_error(self, mock_post):
        mock_post.return_value = _response({"success": False}, status_code=400)
        with self.assertRaises(UploadError):
            self.uploader.upload_image(b"raw", "photo.png")

    @patch("campus.uploads.requests.post")
    def test_transport_error_raises_upload_error(self, mock_post):
        mock_post.side_effect = requests.ConnectionError("down")
        with self.assertRaises(UploadError):
            self.uploader.upload_image(b"raw", "photo.png")

    @patch("campus.uploads.requests.post")
    def test_missing_url_raises_upload_error(self, mock_post):
        mock_post.return_value = _response({"success": True, "data": {}})
        with self.assertRaises(UploadError):
            self.uploader.upload_image(b"raw", "photo.png")

    def test_delete_only_logs(self):
        with self.assertLogs("campus.uploads", level="WARNING"):
            self.uploader.delete_image(UploadedImage(url="https://i.ibb.co/x"))


class S3ImageUploaderTests(unittest.TestCase):
    @patch("campus.uploads.boto3.client")
    def setUp(self, mock_client):
        self.s3 = MagicMock()
        mock_client.return_value = self.s3
        self.uploader = S3ImageUploader(
            bucket="media",
            region="ap-south-1",
            endpoint="",
            access_key_id="key",
            secret_access_key="secret",
            public_base_url="https://cdn.example.edu/",
        )

    def test_upload_puts_object_and_builds_public_url(self):
        image = self.uploader.upload_image(b"raw", "photo.png", "image/png")
        kwargs = self.s3.put_object.call_args.kwargs
        self.assertEqual(kwargs["Bucket"], "media")
        self.assertEqual(kwargs["ContentType"], "image/png")
        self.assertTrue(kwargs["Key"].startswith("posts/"))
        self.assertEqual(image.url, f"https://cdn.example.edu/{kwargs['Key']}")
        self.assertEqual(image.delete_ref, kwargs["Key"])

    def test_upload_failure_raises_upload_error(self):
        self.s3.put_object.side_effect = ClientError(
            {"Error": {"Code": "AccessDenied", "Message": "no"}}, "PutObject"
        )
        with self.assertRaises(UploadError):
            self.uploader.upload_image(b"raw", "photo.png")

    def test_delete_removes_object(self):
        self.uploader.delete_image(
            UploadedImage(url="https://cdn.example.edu/posts/x", delete_ref="posts/x")
        )
        self.s3.delete_object.assert_called_once_with(Bucket="media", Key="posts/x")


if __name__ == "__main__":
    unittest.main()

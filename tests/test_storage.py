import requests
from unittest.mock import Mock, patch
from educhain.integrations.storage_client import StorageClient


class TestStorageClient:
    """Test the object storage client"""

    def setup_method(self):
        self.client = StorageClient(base_url='https://storage.test/', api_key='key', bucket='files')

    def test_build_path_is_unique_and_safe(self):
        first = self.client.build_path('homeworks/1', '../my notes.pdf')
        second = self.client.build_path('homeworks/1', '../my notes.pdf')

        assert first != second
        assert first.startswith('homeworks/1/')
        assert first.endswith('-my_notes.pdf')

    @patch('educhain.integrations.storage_client.requests.post')
    def test_upload(self, mock_post):
        mock_post.return_value = Mock(status_code=200)

        url = self.client.upload('homeworks/1/abc-notes.pdf', b'data', 'application/pdf')

        assert url == 'https://storage.test/object/public/files/homeworks/1/abc-notes.pdf'
        args, kwargs = mock_post.call_args
        assert args[0] == 'https://storage.test/object/files/homeworks/1/abc-notes.pdf'
        assert kwargs['headers']['Authorization'] == 'Bearer key'
        assert kwargs['headers']['Content-Type'] == 'application/pdf'

    @patch('educhain.integrations.storage_client.requests.post')
    def test_upload_failure(self, mock_post):
        mock_post.side_effect = requests.exceptions.ConnectionError('down')

        assert self.client.upload('homeworks/1/a.pdf', b'data') is None

    def test_upload_without_storage_url(self):
        client = StorageClient(base_url='', api_key='key')
        assert client.upload('homeworks/1/a.pdf', b'data') is None

    @patch('educhain.integrations.storage_client.requests.delete')
    def test_delete(self, mock_delete):
        mock_delete.return_value = Mock(status_code=200)

        removed = self.client.delete('https://storage.test/object/public/files/homeworks/1/a.pdf')

        assert removed is True
        assert mock_delete.call_args[0][0] == 'https://storage.test/object/files/homeworks/1/a.pdf'

    def test_delete_foreign_url(self):
        assert self.client.delete('https://elsewhere.test/a.pdf') is False

import os
import pytest
from concurrent.futures import ThreadPoolExecutor
from moto import mock_aws
from fastapi.testclient import TestClient
import boto3

# Set test environment variables BEFORE importing app modules

# Dummy AWS credentials for moto
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_REGION"] = "us-east-1"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["S3_BUCKET"] = "photo-gallery-bucket"
os.environ["USERS_TABLE"] = "Users"
os.environ["JWT_ALGORITHM"] = "HS256"
os.environ["JWT_SECRET"] = "test-secret-with-enough-bytes-for-hs256"
# Clear the AWS_ENDPOINT_URL so moto mocks are used instead of localstack
os.environ.pop("AWS_ENDPOINT_URL", None)
os.environ.pop("PUBLIC_ENDPOINT_URL", None)

from app.main import app
from app.settings import settings

BUCKET = "photo-gallery-bucket"


@pytest.fixture(scope="function")
def aws_credentials():
    """Mocked AWS Credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"


@pytest.fixture(scope="function")
def executor():
    pool = ThreadPoolExecutor(max_workers=4)
    yield pool
    pool.shutdown(wait=True)


@pytest.fixture(scope="function")
def s3_bucket(aws_credentials):
    """Moto-backed bucket; yields a raw boto3 client for seeding objects."""
    with mock_aws():
        s3 = boto3.client("s3", region_name="us-east-1")
        s3.create_bucket(Bucket=BUCKET)
        yield s3


@pytest.fixture(scope="function")
def s3_service(s3_bucket):
    from app.storage.s3 import S3Service
    service = S3Service(settings.storage_config(), page_size=2)
    yield service
    service.close()


@pytest.fixture(scope="function")
def test_client(s3_bucket):
    # Lifespan builds the S3 client, the user table and the photo service inside the moto context
    with TestClient(app) as client:
        yield client


@pytest.fixture(scope="function")
def signed_in_client(test_client):
    resp = test_client.post("/signup", json={"email": "alice@example.com", "password": "s3cret", "name": "Alice"})
    assert resp.status_code == 201
    resp = test_client.post("/signin", json={"email": "alice@example.com", "password": "s3cret"})
    assert resp.status_code == 200
    return test_client


@pytest.fixture(scope="function")
def user_repository(aws_credentials):
    """Moto-backed Users table."""
    from app.storage.dynamodb import UserRepository
    with mock_aws():
        repo = UserRepository(settings.storage_config(), settings.users_table)
        yield repo
        repo.close()

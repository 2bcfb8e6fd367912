import sys
from dataclasses import dataclass
from pathlib import Path
from unittest.mock import patch

import pytest

# Garante que src e src/order_images estejam no path (layout do pacote da Lambda)
_root = Path(__file__).resolve().parents[1]
for path in (str(_root / "src" / "order_images"), str(_root / "src")):
    if path in sys.path:
        sys.path.remove(path)
    sys.path.insert(0, path)


@dataclass
class FakeLambdaContext:
    function_name: str = "order-images"
    memory_limit_in_mb: int = 512
    invoked_function_arn: str = "arn:aws:lambda:us-east-1:123456789012:function:order-images"
    aws_request_id: str = "52fdfc07-2182-154f-163f-5f0f9a621d72"


@pytest.fixture
def lambda_context() -> FakeLambdaContext:
    return FakeLambdaContext()


@pytest.fixture
def shopify_env():
    with patch.dict(
        "os.environ",
        {"SHOPIFY_STORE_NAME": "test-store", "ADMIN_API_ACCESS_TOKEN": "shpat_fake", "API_VERSION": "2024-04"},
    ):
        yield

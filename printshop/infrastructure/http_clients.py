import httpx
import logging
from typing import Optional
from pydantic import ValidationError

from printshop.domain.models import StorageRef, Store
from printshop.domain.exceptions import OrderValidationError, StorageServiceError, StoreServiceError

logger = logging.getLogger(__name__)


class HTTPStoreClient:
    def __init__(self, base_url: str, api_token: str):
        self._base_url = base_url
        self._api_token = api_token

    async def get_store(self, store_id: str) -> Optional[Store]:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.get(
                    f"{self._base_url}/api/stores/{store_id}",
                    headers={"X-API-Key": self._api_token},
                    timeout=10.0
                )

                if response.status_code == 200:
                    data = response.json()
                    try:
                        return Store(
                            id=str(data.get("id") or data.get("_id") or store_id),
                            name=data.get("name", ""),
                            pricing=data.get("pricing"),
                        )
                    except ValidationError as e:
                        raise OrderValidationError(f"Некорректный прайс точки печати {store_id}: {e}")
                elif response.status_code == 404:
                    return None
                else:
                    raise StoreServiceError(f"Store service ошибка: {response.status_code}")

        except httpx.RequestError as e:
            logger.error(f"Store service ошибка подключения: {e}")
            raise StoreServiceError(f"Store service не доступен: {str(e)}")


class HTTPObjectStorageClient:
    def __init__(self, base_url: str, api_token: str):
        self._base_url = base_url
        self._api_token = api_token

    async def store(self, filename: str, content: bytes, content_type: str) -> StorageRef:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self._base_url}/api/files",
                    files={"file": (filename, content, content_type)},
                    headers={"X-API-Key": self._api_token},
                    timeout=60.0
                )

                if response.status_code in (200, 201):
                    data = response.json()
                    return StorageRef(url=data["url"], opaque_id=data["id"])
                else:
                    raise StorageServiceError(f"Storage ошибка при загрузке {filename}: {response.status_code}")

        except httpx.RequestError as e:
            logger.error(f"Storage ошибка подключения: {e}")
            raise StorageServiceError(f"Storage не доступен: {str(e)}")

    async def sign_url(self, opaque_id: str, expires_in: int) -> str:
        try:
            async with httpx.AsyncClient() as client:
                response = await client.post(
                    f"{self._base_url}/api/files/{opaque_id}/signed-url",
                    json={"expires_in": expires_in},
                    headers={"X-API-Key": self._api_token},
                    timeout=10.0
                )

                if response.status_code == 200:
                    return response.json()["url"]
                else:
                    raise StorageServiceError(f"Storage ошибка подписи ссылки: {response.status_code}")

        except httpx.RequestError as e:
            logger.error(f"Storage ошибка подключения: {e}")
            raise StorageServiceError(f"Storage не доступен: {str(e)}")

# storefront/services/product_client.py
import requests
from requests import RequestException

from storefront.domain.errors import NotFound, CatalogUnavailable
from storefront.utils.retry import http_retry
from storefront.utils.settings import PRODUCT_SERVICE_URL
from storefront.utils.logging import get_logger

logger = get_logger(__name__)


class ProductClient:
    """
    Klient katalogu produktow (product-service).
    get_product zwraca {id, name, price, stock, category, image}.
    """

    def __init__(self, base_url: str | None = None, timeout: int = 2):
        self.base_url = (base_url or PRODUCT_SERVICE_URL).rstrip("/")
        self.timeout = timeout

    @http_retry()
    def fetch_product(self, product_id: int) -> dict | None:
        url = f"{self.base_url}/products/{product_id}"
        logger.info(f"ProductClient GET {url}")

        resp = requests.get(url, timeout=self.timeout)
        #404 to odpowiedz, nie blad sieci, bez retry
        if resp.status_code == 404:
            return None
        resp.raise_for_status()
        return resp.json()

    def get_product(self, product_id: int) -> dict:
        try:
            pdata = self.fetch_product(product_id)
        except RequestException as e:
            logger.error(f"Katalog niedostepny dla produktu {product_id}: {e}")
            raise CatalogUnavailable("Katalog produktow jest niedostepny") from e

        if pdata is None:
            raise NotFound(f"Produkt {product_id} nie istnieje")
        return pdata

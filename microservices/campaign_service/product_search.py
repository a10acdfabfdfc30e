"""
Product Search

Keyword search over the product catalog and term sales, delegated to the
product search workflow.
"""

import logging
from typing import Optional

from .models import ProductSearchResult
from .protocols import WorkflowClientProtocol, WorkflowNotConfiguredError

logger = logging.getLogger(__name__)

MIN_KEYWORD_LENGTH = 2


class ProductSearchService:
    """Catalog search for the campaign product picker"""

    def __init__(self, workflow_client: WorkflowClientProtocol, workflow_id: Optional[str]):
        self.workflow_client = workflow_client
        self.workflow_id = workflow_id

    async def search(self, keyword: Optional[str]) -> ProductSearchResult:
        """
        Search products and term sales.

        Keywords shorter than MIN_KEYWORD_LENGTH return an empty result
        without calling the workflow.
        """
        keyword = (keyword or "").strip()
        if len(keyword) < MIN_KEYWORD_LENGTH:
            return ProductSearchResult(keyword=keyword)

        if not self.workflow_id or not self.workflow_client.is_configured(require_project=True):
            raise WorkflowNotConfiguredError("Product search workflow not configured")

        response = await self.workflow_client.execute_workflow(self.workflow_id, {"keyword": keyword})
        result = response.get("result")
        if not isinstance(result, dict):
            result = {}

        products = result.get("products") or []
        term_sales = result.get("term_sales") or []
        logger.debug(f"Product search '{keyword}': {len(products)} products, {len(term_sales)} term sales")

        return ProductSearchResult(
            products=products,
            term_sales=term_sales,
            products_count=result.get("products_count") or len(products),
            term_sales_count=result.get("term_sales_count") or len(term_sales),
            keyword=result.get("keyword") or keyword,
        )


__all__ = ["ProductSearchService", "MIN_KEYWORD_LENGTH"]

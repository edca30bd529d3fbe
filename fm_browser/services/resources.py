import logging
from typing import Any, Dict, List, Optional

from ..core.config import Config
from ..core.errors import FileMakerError
from ..models import PaginatedResult, Record
from . import sample_data
from .filemaker_query import DateLike, SearchField, build_find_query, compute_offset, sort_by
from .filemaker_service import FileMakerService


logger = logging.getLogger(__name__)

# Layout names
CONTACTS_LAYOUT = "CMT_Web"
PRODUCTS_LAYOUT = "PRD_Web"
LOTS_LAYOUT = "ITY_Web"
SALES_LAYOUT = "SLS_Web"
LINE_ITEMS_LAYOUT = "LIC_Web"

CONTACT_SEARCH = (SearchField("ContactName"), SearchField("USSMID"))
PRODUCT_SEARCH = (SearchField("ProductName"), SearchField("ItemNo"))
SALE_SEARCH = (
    SearchField("InvoiceNo", exact=True),
    SearchField("ContactName_BillTo"),
    SearchField("SalesKey_Display", exact=True),
)

SALES_DATE_FIELD = "SalesDate"
# Only sale records (not quotes) that have not been superseded by a revision
SALE_CRITERIA = {"IsSale": "1", "Revision_NextCreated": "="}

LINE_ITEMS_LIMIT = 500

# Fields each entity exposes for display
CONTACT_FIELDS = ("USSMID", "ContactName", "ContactType", "SalesContactName", "SalesContactPhone", "SalesContactEmail", "LastSalesDate")
PRODUCT_FIELDS = ("ItemNo", "ProductName", "ProductCategory", "ProductCost_c", "CurrentInventory_w", "UnitType", "DefaultPackSize")
LOT_FIELDS = (
    "ItemNo", "SerialNo", "WarehouseName", "MfgDate", "ExpDate", "LotNo_QtyAll", "LotNo_QtyUsed",
    "LotNo_QtyTransferOut", "LotNo_QtyTransferIn", "LotNo_CurrentInventory_Static", "INVTransferStatus", "Cost",
)
SALE_FIELDS = ("SalesKey_Display", "SalesStatus_new", "SalesDate", "UssmID", "ContactName_BillTo", "InvoiceNo", "Total_Static_Display", "InvoiceDate")
LINE_ITEM_FIELDS = ("ItemNo", "ProductDescription", "Quantity", "PriceOfSale", "LinePrice", "SerialNo", "UnitType", "SalesKeyProducts")


def _sample_matches(row: Dict[str, Any], term: str, search_fields) -> bool:
    for f in search_fields:
        value = str(row["fieldData"].get(f.name, ""))
        if f.exact and value == term:
            return True
        if not f.exact and term.lower() in value.lower():
            return True
    return False


def _sample_page(
    rows: List[Dict[str, Any]],
    page: int,
    limit: int,
    search: Optional[str] = None,
    search_fields=(),
) -> PaginatedResult:
    offset = compute_offset(page, limit) - 1
    term = (search or "").strip()
    found = [row for row in rows if _sample_matches(row, term, search_fields)] if term else rows
    records = [Record.model_validate(row) for row in found[offset:offset + limit]]
    return PaginatedResult(data=records, total_count=len(rows), found_count=len(found))


def _sample_record(rows: List[Dict[str, Any]], record_id: str) -> Optional[Record]:
    for row in rows:
        if row["recordId"] == record_id:
            return Record.model_validate(row)
    return None


class ResourceAccessors:
    """One accessor per entity on top of :class:`FileMakerService`.

    With no FileMaker host configured the accessors serve the built-in
    sample records instead of calling the network.
    """

    def __init__(self, config: Config, service: Optional[FileMakerService] = None):
        self.config = config
        self.service = service

    @property
    def offline(self) -> bool:
        return self.service is None or not self.config.has_host

    # Contacts

    def get_contacts(self, page: int = 1, limit: int = 20, search: str = "") -> PaginatedResult:
        if self.offline:
            return _sample_page(sample_data.sample_contacts(), page, limit, search, CONTACT_SEARCH)
        query = build_find_query(page, limit, search, search_fields=CONTACT_SEARCH)
        return self.service.fetch_page(CONTACTS_LAYOUT, query)

    def get_contact(self, record_id: str) -> Optional[Record]:
        if self.offline:
            return _sample_record(sample_data.sample_contacts(), record_id)
        return self.service.get_record(CONTACTS_LAYOUT, record_id)

    # Products

    def get_products(self, page: int = 1, limit: int = 20, search: str = "") -> PaginatedResult:
        if self.offline:
            return _sample_page(sample_data.sample_products(), page, limit, search, PRODUCT_SEARCH)
        query = build_find_query(page, limit, search, search_fields=PRODUCT_SEARCH)
        return self.service.fetch_page(PRODUCTS_LAYOUT, query)

    def get_product(self, record_id: str) -> Optional[Record]:
        if self.offline:
            return _sample_record(sample_data.sample_products(), record_id)
        return self.service.get_record(PRODUCTS_LAYOUT, record_id)

    def get_product_by_item_no(self, item_no: str) -> Optional[Record]:
        if self.offline:
            for row in sample_data.sample_products():
                if row["fieldData"]["ItemNo"] == item_no:
                    return Record.model_validate(row)
            return None
        try:
            return self.service.find_one(PRODUCTS_LAYOUT, [{"ItemNo": f"={item_no}"}])
        except FileMakerError as e:
            logger.error(f"Failed to fetch product by ItemNo {item_no}: {e}")
            return None

    def get_lots(self, item_no: str) -> List[Record]:
        if self.offline:
            return []
        try:
            return self.service.find_all(LOTS_LAYOUT, [{"ItemNo": f"={item_no}"}])
        except FileMakerError as e:
            logger.warning(f"Failed to fetch lots for {item_no}: {e}")
            return []

    # Sales

    def get_sales(
        self,
        page: int = 1,
        limit: int = 20,
        search: str = "",
        start_date: DateLike = None,
        end_date: DateLike = None,
    ) -> PaginatedResult:
        if self.offline:
            return _sample_page(sample_data.sample_sales(), page, limit, search, SALE_SEARCH)
        query = build_find_query(
            page,
            limit,
            search,
            start_date,
            end_date,
            search_fields=SALE_SEARCH,
            date_field=SALES_DATE_FIELD,
            fixed_criteria=SALE_CRITERIA,
            sort=sort_by(SALES_DATE_FIELD, "descend"),
        )
        return self.service.fetch_page(SALES_LAYOUT, query)

    def get_sale(self, record_id: str) -> Optional[Record]:
        if self.offline:
            return _sample_record(sample_data.sample_sales(), record_id)
        return self.service.get_record(SALES_LAYOUT, record_id)

    def get_line_items(self, sales_key_products: str) -> List[Record]:
        if self.offline:
            return []
        try:
            return self.service.find_all(
                LINE_ITEMS_LAYOUT,
                [{"SalesKeyProducts": f"={sales_key_products}"}],
                limit=LINE_ITEMS_LIMIT,
            )
        except FileMakerError as e:
            logger.error(f"Failed to fetch line items for {sales_key_products}: {e}")
            return []


ENTITY_FIELDS = {
    "contacts": CONTACT_FIELDS,
    "products": PRODUCT_FIELDS,
    "lots": LOT_FIELDS,
    "sales": SALE_FIELDS,
    "line-items": LINE_ITEM_FIELDS,
}

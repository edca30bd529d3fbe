"""Built-in records served when no FileMaker host is configured.

Lets the HTTP surface be exercised locally without a server.
"""

from typing import Any, Dict, List


def sample_contacts() -> List[Dict[str, Any]]:
    return [
        {"recordId": "1", "fieldData": {"USSMID": "101", "ContactName": "Alice Smith", "ContactType": "Staff", "SalesContactName": "John", "SalesContactPhone": "123", "SalesContactEmail": "a@a.com", "LastSalesDate": "01/01/2023"}},
        {"recordId": "2", "fieldData": {"USSMID": "102", "ContactName": "Bob Jones", "ContactType": "Customer", "SalesContactName": "Jane", "SalesContactPhone": "456", "SalesContactEmail": "b@b.com", "LastSalesDate": "02/01/2023"}},
    ]


def sample_products() -> List[Dict[str, Any]]:
    return [
        {"recordId": "101", "fieldData": {"ProductName": "Super Gadget", "ItemNo": "SG-001", "ProductCost_c": 99.99, "ProductCategory": "Hardware", "CurrentInventory_w": 10, "DefaultPackSize": 1, "UnitType": "Unit"}},
        {"recordId": "102", "fieldData": {"ProductName": "Mega Widget", "ItemNo": "MW-002", "ProductCost_c": 149.50, "ProductCategory": "Hardware", "CurrentInventory_w": 5, "DefaultPackSize": 12, "UnitType": "Box"}},
    ]


def sample_sales() -> List[Dict[str, Any]]:
    return [
        {"recordId": "202", "fieldData": {"SalesKey_Display": "1002", "SalesStatus_new": "Open", "SalesDate": "02/01/2023", "Total_Static_Display": "2,300.50", "ContactName_BillTo": "Client B", "InvoiceNo": 124, "InvoiceDate": "02/01/2023", "UssmID": "U2"}},
    ]

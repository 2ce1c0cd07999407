"""
Example: Basic Service Layer usage with sap_b1
==============================================

This example shows paging, page iteration and a transactional batch.
"""

from sap_b1 import (
    BatchRequest,
    ConnectionContext,
    Credentials,
    Operation,
    RequestExecutor,
    ServiceLayerConfig,
    SessionManager,
)


def example_paging():
    """Fetch one page of items with an explicit configuration."""

    cfg = ServiceLayerConfig(
        base_url="https://your-b1.example.com:50000/b1s/v1",
        credentials=Credentials("SBODEMOUS", "manager", "PASSWORD"),
        verify=True,
        timeout=30,
    )

    with SessionManager(cfg) as sessions:
        executor = RequestExecutor(sessions)

        # Third page of 50 items ($skip=100)
        page = executor.get("Items?$select=ItemCode,ItemName", page=2, page_size=50)
        print(f"Got {len(page.items)} items, previous={page.previous}, next={page.next}")
        print("First 2:", page.items[:2])


def example_iter_pages():
    """Walk a whole collection using ConnectionContext."""

    # Reads from environment variables: SAP_B1_URL, SAP_B1_DATABASE, SAP_B1_USER, SAP_B1_PASS
    with ConnectionContext() as conn:
        query = Operation("GET", "BusinessPartners?$select=CardCode,CardName&$filter=CardType eq 'C'")
        total = 0
        for page in conn.executor.iter_pages(query, page_size=100, max_pages=10):
            total += len(page.items)
        print(f"Found {total} customers")


def example_transactional_batch():
    """Create a customer and update an item in one changeset."""

    with ConnectionContext() as conn:
        batch = BatchRequest(
            operations=[
                Operation("POST", "BusinessPartners", body={
                    "CardCode": "C99999",
                    "CardName": "Acme Corp",
                    "CardType": "cCustomer",
                }),
                Operation("PATCH", "Items('A001')", body={"ItemName": "Widget, blue"}),
            ],
            transactional=True,
        )
        result = conn.executor.execute_batch(batch)

        for record in result:
            print(record.content_id, record.http_code, record.http_status)
        if result.failed():
            print("Changeset rolled back:", result.failed()[0].body)


if __name__ == "__main__":
    # Uncomment the example you want to run
    # example_paging()
    # example_iter_pages()
    # example_transactional_batch()
    pass

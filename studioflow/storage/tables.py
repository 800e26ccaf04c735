"""Table and bucket names of the hosted studio database."""

COUPLES = "couples"
PAYMENTS = "payments"
DELIVERABLES = "deliverables"
STAFF_ASSIGNMENTS = "staff_assignments"
EXTRAS_ORDERS = "extras_orders"
QUOTES = "quotes"
CONTRACTS = "contracts"
CONTRACT_INSTALLMENTS = "contract_installments"
CONTRACT_SIGNATURES = "contract_signatures"

TABLES = [
    COUPLES,
    PAYMENTS,
    DELIVERABLES,
    STAFF_ASSIGNMENTS,
    EXTRAS_ORDERS,
    QUOTES,
    CONTRACTS,
    CONTRACT_INSTALLMENTS,
    CONTRACT_SIGNATURES,
]

DEFAULT_BUCKET = "couple-documents"


def document_path(customer_id: str, filename: str, prefix: str = "") -> str:
    """Deterministic blob path for a couple's source document."""

    return f"{customer_id}/{prefix}{filename}"

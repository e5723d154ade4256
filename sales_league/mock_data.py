# sales_league/mock_data.py
"""Demo rows served when MODE=mock: one user per league boundary plus a demo user covering every bucket."""
from sales_league.config import PAID_STATUS


def _companies(user_id: str, count: int, contact: bool = True, prefix: str = "c") -> list[dict]:
    return [
        {
            "user_id": user_id,
            "company_id": f"{prefix}{i + 1}",
            "company_name": f"Company {i + 1}",
            "contact_name": f"Contact {i + 1}" if contact else "",
            "created_at": "2024-01-01",
        }
        for i in range(count)
    ]


MOCK_COMPANIES = (
    _companies("user_0", 2, contact=False)
    + _companies("user_99", 99)
    + _companies("user_100", 100)
    + _companies("user_300", 300)
    + _companies("user_900", 900)
    + _companies("user_1200", 1200)
    + _companies("user_1500", 1500)
    + _companies("user_15000", 15000)
    + _companies("demo_user", 250, prefix="demo_c")
)

MOCK_INVOICES = [
    # Issued only, nothing paid
    {"user_id": "user_no_paid", "invoice_id": "inv1", "invoice_amount": 10000, "invoice_date": "2024-01-01", "status": "В работе"},
    {"user_id": "user_no_paid", "invoice_id": "inv2", "invoice_amount": 50000, "invoice_date": "2024-01-02", "status": "В работе"},
    # Demo user: every bucket, mixed statuses, two deals without an invoice number
    {"user_id": "demo_user", "invoice_id": "inv1", "invoice_amount": 25000, "invoice_date": "2024-01-01", "status": PAID_STATUS, "paid_date": "2024-01-05", "budget": 25000, "purchase_amount": 20500},
    {"user_id": "demo_user", "invoice_id": "inv2", "invoice_amount": 40000, "invoice_date": "2024-01-02", "status": PAID_STATUS, "paid_date": "2024-01-06", "budget": 40000, "purchase_amount": 31200},
    {"user_id": "demo_user", "invoice_id": "inv3", "invoice_amount": 100000, "invoice_date": "2024-01-03", "status": PAID_STATUS, "paid_date": "2024-01-07", "budget": 100000, "purchase_amount": 75000},
    {"user_id": "demo_user", "invoice_id": "inv4", "invoice_amount": 150000, "invoice_date": "2024-01-04", "status": "В работе", "budget": 150000, "purchase_amount": 120000},
    {"user_id": "demo_user", "invoice_id": "inv5", "invoice_amount": 350000, "invoice_date": "2024-01-05", "status": PAID_STATUS, "paid_date": "2024-01-10", "budget": 350000, "purchase_amount": 252000},
    {"user_id": "demo_user", "invoice_id": "inv6", "invoice_amount": 750000, "invoice_date": "2024-01-06", "status": PAID_STATUS, "paid_date": "2024-01-12", "budget": 750000, "purchase_amount": 525000},
    {"user_id": "demo_user", "invoice_id": "inv7", "invoice_amount": 1500000, "invoice_date": "2024-01-07", "status": PAID_STATUS, "paid_date": "2024-01-15", "budget": 1500000, "purchase_amount": 1020000},
    {"user_id": "demo_user", "invoice_id": "inv8", "invoice_amount": 3000000, "invoice_date": "2024-01-08", "status": "В работе", "budget": 3000000, "purchase_amount": 2250000},
    {"user_id": "demo_user", "invoice_id": "", "invoice_amount": 5000, "invoice_date": "2024-01-09", "status": "Отказ"},
    {"user_id": "demo_user", "invoice_id": "", "invoice_amount": 80000, "invoice_date": "2024-01-10", "status": "Отказ"},
]

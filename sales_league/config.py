# sales_league/config.py

"""
Central configuration for the Sales League dashboard.
-- League tiers, hard-skill ranks, invoice buckets and data source settings --
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _env_list(name: str, default: str) -> list[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


# --- Deal Statuses ---
# A deal is closed (paid) only when "Имя статуса" equals one of these exactly.
PAID_DEAL_STATUSES = _env_list("PAID_DEAL_STATUSES", "Успешно реализовано")
PAID_STATUS = PAID_DEAL_STATUSES[0]

# Deals completed before this year are ignored by the monthly series.
ACHIEVEMENTS_MIN_YEAR = int(os.getenv("ACHIEVEMENTS_MIN_YEAR", "2024"))

# Monthly keys for lifetime-scoped achievements
LIFETIME_MONTH_KEY = "all"

APP_TIMEZONE = os.getenv("APP_TIMEZONE", "Europe/Moscow")

EXCLUDED_FROM_EMPLOYEES = _env_list("EXCLUDED_FROM_EMPLOYEES", "Корецкий")

# --- Leagues (by number of companies with a named contact) ---
# "max": None means the tier is open-ended.
LEAGUES = [
    {"id": "bronze", "name": "Bronze", "min": 0, "max": 99, "color_hex": "#CD7F32", "badge_image_path": "/badges/bronze.png"},
    {"id": "silver", "name": "Silver", "min": 100, "max": 299, "color_hex": "#C0C0C0", "badge_image_path": "/badges/silver.png"},
    {"id": "gold", "name": "Gold", "min": 300, "max": 899, "color_hex": "#FFD700", "badge_image_path": "/badges/gold.png"},
    {"id": "platinum", "name": "Platinum", "min": 900, "max": 1199, "color_hex": "#E5E4E2", "badge_image_path": "/badges/platinum.png"},
    {"id": "diamond", "name": "Diamond", "min": 1200, "max": 1499, "color_hex": "#B9F2FF", "badge_image_path": "/badges/diamond.png"},
    {"id": "master", "name": "Master", "min": 1500, "max": 1749, "color_hex": "#9B59B6", "badge_image_path": "/badges/master.png"},
    {"id": "legend", "name": "Legend", "min": 1750, "max": None, "color_hex": "#FF6B35", "badge_image_path": "/badges/legend.png"},
]

# --- Invoice Amount Buckets ---
# Lower bound inclusive, upper bound exclusive; the last bucket is open-ended.
BUCKETS = [
    {"id": "<50k", "label": "< 50 000", "min": 0, "max": 50_000},
    {"id": "50-200k", "label": "50 000 – 200 000", "min": 50_000, "max": 200_000},
    {"id": "200-500k", "label": "200 000 – 500 000", "min": 200_000, "max": 500_000},
    {"id": "500k-1M", "label": "500 000 – 1 000 000", "min": 500_000, "max": 1_000_000},
    {"id": ">1M", "label": "> 1 000 000", "min": 1_000_000, "max": None},
]

# --- Hard Skills Ranks (highest first) ---
# A rank is granted only when margin, conversion (%) and paid count all meet the minimums.
HARD_SKILLS_RANKS = [
    {"id": "s", "emoji": "🔥", "letter": "S", "name": "Легенда SpaceMetall", "margin_min": 15_000_000, "conversion_min": 15, "paid_count_min": 500},
    {"id": "a", "emoji": "💎", "letter": "A", "name": "Ядро компании", "margin_min": 6_000_000, "conversion_min": 13, "paid_count_min": 250},
    {"id": "b", "emoji": "🥇", "letter": "B", "name": "Системный", "margin_min": 2_000_000, "conversion_min": 11, "paid_count_min": 100},
    {"id": "c", "emoji": "🥈", "letter": "C", "name": "Игрок базы", "margin_min": 500_000, "conversion_min": 8, "paid_count_min": 30},
    {"id": "d", "emoji": "🥉", "letter": "D", "name": "Начальный", "margin_min": 0, "conversion_min": 0, "paid_count_min": 0},
]

# --- Monthly Sales Plans (budget, rubles). 0 = no plan ---
MONTHLY_PLANS = {
    "Ружников Дмитрий Константинович": 200_000,
    "Кадыров Никита Дмитриевич": 150_000,
    "Гнусарёв Евгений Андреевич": 0,
}

# --- Data Sources ---
SHEETS_CONFIG = {
    "mode": os.getenv("MODE", "mock"),
    "cache_ttl_seconds": float(os.getenv("SHEETS_CACHE_TTL_SECONDS", "30")),
    "companies_csv_url": os.getenv("PUBLIC_CSV_COMPANIES_URL"),
    "invoices_csv_url": os.getenv("PUBLIC_CSV_INVOICES_URL"),
    "service_account_json": os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON"),
    "connections_spreadsheet_id": os.getenv("GOOGLE_SHEETS_CONNECTIONS_ID", "1eUmK264I8OMDs69FlIuDiGXkE9B4gO2FnywxiWNnoDo"),
    "sales_funnel_spreadsheet_id": os.getenv("GOOGLE_SHEETS_SALES_FUNNEL_ID", "1Ibc0FSJg3gFTfElZQ6jbAaU2-F7wf89Wf-gHp-klL58"),
    "connections_sheet_name": os.getenv("CONNECTIONS_SHEET_NAME", "Сделки"),
    "sales_funnel_sheet_name": os.getenv("SALES_FUNNEL_SHEET_NAME", "Все сделки из воронки продаж"),
}

# Header aliases, compared case-insensitively ("ид статуса" must never resolve as the status name)
SALES_FUNNEL_COLUMNS = {
    "user_id": ["имя ответственного", "user_id", "userid", "user", "id пользователя", "пользователь", "ответственный"],
    "invoice_number": ["номер счета", "номер счёта", "invoice_id", "invoiceid", "id счета", "счет"],
    "sales_amount": ["сумма продажи", "sales_amount", "amount", "invoice_amount"],
    "budget": ["бюджет сделки", "бюджет", "budget", "бюджет_руб"],
    "purchase_amount": ["сумма закупки", "purchase_amount", "cost", "себестоимость"],
    "status_name": ["имя статуса", "статус сделки", "status"],
    "date": ["date", "invoice_date", "дата", "created_at"],
    "paid_date": ["paid_date", "дата_оплаты", "дата завершения"],
}

CONNECTIONS_COLUMNS = {
    "user_id": ["имя ответственного", "user_id", "userid", "user", "ответственный", "менеджер", "владелец", "id пользователя", "пользователь", "сотрудник"],
    "company_id": ["company_id", "companyid", "company", "id компании", "компания", "id"],
    "company_name": ["название компании", "company_name", "companyname", "компания", "организация"],
    "contact_name": ["имена контактов", "contact_name", "contactname", "контакт", "contact", "контактное лицо", "фио"],
    "created_at": ["created_at", "createdat", "дата", "дата создания"],
}

# Columns read by the achievements job
ACHIEVEMENTS_JOB_COLUMNS = {
    "status": [os.getenv("COLUMN_STATUS_NAME", "Имя статуса"), "статус сделки", "status", "имя статуса"],
    "completion_date": [os.getenv("COLUMN_DONE_DATE", "Дата завершения"), "дата завершения", "paid_date", "дата_оплаты"],
    "manager": [os.getenv("COLUMN_MANAGER", "Ответственный"), "менеджер", "ответственный", "имя ответственного", "user_id"],
}

# --- Serving / Jobs ---
CRON_SECRET = os.getenv("CRON_SECRET")
ACHIEVEMENTS_JOB_INTERVAL_SECONDS = int(os.getenv("ACHIEVEMENTS_JOB_INTERVAL_SECONDS", "3600"))

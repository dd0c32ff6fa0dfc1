# Overview: Flask API route for the dashboard summary.

# backend/ferreteria/routes/dashboard.py
from flask import Blueprint, g

from ..decorators import require_session, require_screen
from ..extensions import db
from ..models import Sale
from ..permissions import Role
from ..services.products_service import list_products
from ..services.reporting_service import dashboard_summary
from ..services.store_guard import store_read
from ..services.user_service import count_users
from ferreteria.time_utils import utcnow

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@dashboard_bp.get("")
@require_session
@require_screen("dashboard")
def dashboard():
    products = list_products()
    with store_read("dashboard sales"):
        sales = db.session.query(Sale).all()
    # Headcount is for managers only
    user_count = count_users() if g.session_context.role == Role.MANAGER else 0
    return dashboard_summary(products, sales, now=utcnow(), user_count=user_count)

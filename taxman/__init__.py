"""taxman: clients, invoices, expenses and GST/BAS reporting for a small business."""
from .api import app

__all__ = ["app"]

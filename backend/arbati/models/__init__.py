from arbati.models.user import User
from arbati.models.customer import Address, Customer
from arbati.models.product import Category, Product
from arbati.models.motorcycle import Motorcycle
from arbati.models.sale import Sale
from arbati.models.invoice import Invoice, InvoiceItem
from arbati.models.payment import CustomerPayment
from arbati.models.ledger import CustomerBalance

__all__ = [
    "User", "Address", "Customer", "Category", "Product", "Motorcycle",
    "Sale", "Invoice", "InvoiceItem", "CustomerPayment", "CustomerBalance",
]

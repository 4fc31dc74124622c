from .auth import User, ApiToken
from .vendors import Vendor, VendorPayment
from .trading import Hotel, Purchase, RetailSale, HotelSale, HotelSaleItem

__all__ = [
    'User', 'ApiToken',
    'Vendor', 'VendorPayment',
    'Hotel', 'Purchase', 'RetailSale', 'HotelSale', 'HotelSaleItem',
]

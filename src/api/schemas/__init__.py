# schemas/__init__.py
from .base_schema import AppBaseModel
from .customer import CustomerBase, CustomerInput, CustomerRecord

__all__ = [
    'AppBaseModel',
    'CustomerBase',
    'CustomerInput',
    'CustomerRecord',
]

"""
Property test factory.
"""

import factory
from faker import Faker

from rental_api.models.property import PropertyStatus

fake = Faker("fr_FR")


class PropertyFactory(factory.Factory):
    """
    Factory for generating Property test data.

    Usage:
        rental_property = Property(**PropertyFactory(owner_id=owner.id))
    """

    class Meta:
        model = dict

    owner_id = None
    title = factory.LazyFunction(lambda: f"{fake.random_element(['Studio', 'T2', 'T3', 'Maison'])} {fake.city()}")
    address = factory.LazyFunction(fake.street_address)
    city = factory.LazyFunction(fake.city)
    postal_code = factory.LazyFunction(fake.postcode)
    status = PropertyStatus.AVAILABLE

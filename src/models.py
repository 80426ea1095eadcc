"""
Database models for the dump ingest application.

This module defines the SQLAlchemy models for the two loaded tables. Column
names match the attribute names of the transformed records.
"""

from sqlalchemy import Column, Integer, String, Text
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


class Organization(Base):
    """Organization loaded from organizations.csv."""
    __tablename__ = "organizations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    OrganizationId = Column(String(255), nullable=False)
    Name = Column(String(255), nullable=False)
    Website = Column(String(255), nullable=False)
    Country = Column(String(255), nullable=False)
    Description = Column(String(255), nullable=False)
    Founded = Column(Integer, nullable=False)
    Industry = Column(String(255), nullable=False)
    NumberOfEmployees = Column(Integer, nullable=False)

    def __repr__(self) -> str:
        """Return string representation of the organization."""
        return f"<Organization(id={self.id}, OrganizationId='{self.OrganizationId}', Name='{self.Name}')>"


class Customer(Base):
    """Customer loaded from customers.csv."""
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True, autoincrement=True)
    CustomerId = Column(String(255), nullable=False)
    FirstName = Column(String(255), nullable=False)
    LastName = Column(String(255), nullable=False)
    Company = Column(String(255), nullable=False)
    City = Column(String(255), nullable=False)
    Country = Column(String(255), nullable=False)
    Phone1 = Column(String(255), nullable=False)
    Phone2 = Column(String(255), nullable=False)
    Email = Column(String(255), nullable=False)
    Subscription = Column(Text, nullable=False)
    Website = Column(String(255), nullable=False)

    def __repr__(self) -> str:
        """Return string representation of the customer."""
        return f"<Customer(id={self.id}, CustomerId='{self.CustomerId}', Email='{self.Email}')>"

"""Staffing Portal package.

Feature modules (attendance, leaves, notifications, ...) each carry a domain
model, a repository interface with its MySQL implementation, a service layer
holding the business rules, and a thin Flask controller.
"""

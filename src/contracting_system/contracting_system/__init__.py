"""Contracting System package.

Feature modules (tenants, attendance, payments, provisioning, ...) sit on
top of a tenant/branch scope guard, with a thin Flask controller layer and
Protocol-based service/repository layers.
"""

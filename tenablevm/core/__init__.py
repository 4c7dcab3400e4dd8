"""Core Business Logic Module

This module provides the client and reconciliation logic for Tenable VM
user management, independent of any host application.

Module Structure:
    - tenable/          : Low-level Tenable VM API client, codec and lookups
    - user_resource.py  : User reconciler (create/read/update/delete)

Usage Pattern:
    Import explicitly when needed:
        from tenablevm.core.tenable import TenableClient, RoleService
        from tenablevm.core.user_resource import UserReconciler, UserSpec
"""

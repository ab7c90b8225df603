"""
Feature modules live under this package.

Each role module owns its blueprint and templates; shared entities (batches,
notifications) own their models and services. All of them reuse the platform
primitives (auth, role guard, audit, DB session).
"""

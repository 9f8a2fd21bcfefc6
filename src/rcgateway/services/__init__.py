"""Services package for RC Gateway.

Submodules:
- normalizer: conversion between wire and stored RC representations
- upstream: client for the upstream RC API
- rc_details: read-through cache orchestration
"""

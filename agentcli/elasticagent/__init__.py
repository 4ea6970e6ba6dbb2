"""Elastic Agent support: status API client and pipeline adapter."""
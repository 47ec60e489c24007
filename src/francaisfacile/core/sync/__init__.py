"""Synchronisation : récupération des pages et orchestration des crawls."""

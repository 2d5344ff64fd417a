"""Automation-authored reply drafts: idempotent creation and human-approved sending"""

"""Inbound message decisioning: classifier output, decision snapshots, draft eligibility"""

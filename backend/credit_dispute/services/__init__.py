"""Credit Dispute Engine - Services"""

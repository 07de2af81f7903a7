"""Account model, instruction building and transaction signing"""

"""
Listing site automation: filter panel reconciliation over a remote browser.
"""

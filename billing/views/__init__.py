"""
Billing views package.

account       profile read/update for the logged-in user
payments      gateway-facing endpoints (create/verify payment, exchange rate, plans)
subscription  current subscription + free trial
checkout      session-backed select/start/complete
history       payment history + invoice data
"""

"""
Checkout service package.

Order placement workflow: a coordinator driving address, payment, inventory
and coupon steps over a checkout store, inside one transaction.
"""

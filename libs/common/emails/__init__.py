"""
Palaro email package.

Modules:
- core: base send_email function (Brevo SMTP)
- orders: order status notification emails
"""

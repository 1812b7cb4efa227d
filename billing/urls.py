from django.urls import path

from billing.views import account, checkout, history, payments, subscription

app_name = "billing"

urlpatterns = [
    # gateway-facing
    path("create-payment/", payments.create_payment, name="create_payment"),
    path("verify-payment/", payments.verify_payment, name="verify_payment"),
    path("exchange-rate/", payments.exchange_rate, name="exchange_rate"),
    path("plans/", payments.plans_catalog, name="plans"),

    # account (session login required)
    path("account/", account.account_detail, name="account"),
    path("subscription/", subscription.subscription_detail, name="subscription"),
    path("subscription/free-trial/", subscription.start_free_trial, name="free_trial"),
    path("checkout/select/", checkout.checkout_select, name="checkout_select"),
    path("checkout/start/", checkout.checkout_start, name="checkout_start"),
    path("checkout/complete/", checkout.checkout_complete, name="checkout_complete"),
    path("payments/history/", history.payment_history, name="payment_history"),
    path("payments/<int:pk>/invoice/", history.invoice_detail, name="invoice"),
]

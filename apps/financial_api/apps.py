from django.apps import AppConfig


class FinancialApiConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'apps.financial_api'

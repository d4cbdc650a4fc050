from django.contrib import admin
from .models import AccountPayable, AccountReceivable, CashFlowEntry, Invoice, InvoiceItem


class InvoiceItemInline(admin.TabularInline):
    model = InvoiceItem
    extra = 0
    readonly_fields = ('total_price',)


@admin.register(Invoice)
class InvoiceAdmin(admin.ModelAdmin):
    list_display = ('invoice_number', 'customer', 'issue_date', 'due_date', 'total_amount', 'status')
    list_filter = ('status', 'payment_method')
    search_fields = ('invoice_number', 'customer__full_name')
    readonly_fields = ('invoice_number', 'total_amount', 'paid_at')
    inlines = [InvoiceItemInline]


@admin.register(AccountPayable)
class AccountPayableAdmin(admin.ModelAdmin):
    list_display = ('supplier_name', 'amount', 'due_date', 'category', 'status')
    list_filter = ('status', 'category')
    search_fields = ('supplier_name', 'document_number')


@admin.register(AccountReceivable)
class AccountReceivableAdmin(admin.ModelAdmin):
    list_display = ('customer', 'amount', 'due_date', 'status')
    list_filter = ('status',)
    search_fields = ('customer__full_name',)


@admin.register(CashFlowEntry)
class CashFlowEntryAdmin(admin.ModelAdmin):
    list_display = ('date', 'entry_type', 'amount', 'category', 'reference_type', 'reference_id')
    list_filter = ('entry_type', 'category')
    date_hierarchy = 'date'

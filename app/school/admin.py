"""
Django admin configuration for school models.
"""

from django.contrib import admin

from school.models import Enrollment, SchoolClass, Student


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ("full_name", "email", "asaas_customer_id", "created_at")
    search_fields = ("full_name", "email", "cpf", "asaas_customer_id")
    readonly_fields = ("asaas_customer_id", "created_at", "updated_at")


@admin.register(SchoolClass)
class SchoolClassAdmin(admin.ModelAdmin):
    list_display = ("name", "monthly_fee")
    search_fields = ("name",)


@admin.register(Enrollment)
class EnrollmentAdmin(admin.ModelAdmin):
    list_display = ("student", "school_class", "is_active", "created_at")
    list_filter = ("is_active", "school_class")
    search_fields = ("student__full_name", "student__email")
    raw_id_fields = ("student", "school_class")

from django.contrib import admin

from .models import Student


@admin.register(Student)
class StudentAdmin(admin.ModelAdmin):
    list_display = ('nis', 'name', 'student_class', 'parent_name', 'is_active')
    list_filter = ('student_class', 'is_active')
    search_fields = ('nis', 'name', 'parent_name')

from django.contrib import admin

from taskboard.boards import models


class BoardListInline(admin.TabularInline):
    model = models.BoardList
    extra = 0
    fields = ["title", "position"]


@admin.register(models.Board)
class BoardAdmin(admin.ModelAdmin):
    list_display = ["id", "title", "created_by", "created_at"]
    search_fields = ["title", "description", "created_by__email"]
    filter_horizontal = ["members"]
    inlines = [BoardListInline]


@admin.register(models.Task)
class TaskAdmin(admin.ModelAdmin):
    list_display = ["id", "title", "board_list", "position", "due_date"]
    search_fields = ["title", "description"]
    list_filter = ["due_date", "created_at"]

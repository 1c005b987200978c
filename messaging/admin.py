# messaging/admin.py

from django.contrib import admin
from .models import Chat, ChatParticipant, Message, ReadReceipt, Reaction, DeletedMessage

class ChatParticipantInline(admin.TabularInline):
    model = ChatParticipant
    extra = 0
    raw_id_fields = ('user', 'last_read_message')

class MessageInline(admin.TabularInline):
    model = Message
    fk_name = 'chat'
    extra = 0
    readonly_fields = ('sender', 'content', 'message_type', 'status', 'is_deleted', 'created_at')
    can_delete = False
    show_change_link = True

@admin.register(Chat)
class ChatAdmin(admin.ModelAdmin):
    list_display = ('id', 'name', 'chat_type', 'display_participants', 'message_count', 'updated_at', 'is_deleted')
    list_filter = ('chat_type', 'is_deleted', 'created_at')
    search_fields = ('name', 'participants__user__email')
    readonly_fields = ('created_at', 'updated_at')
    raw_id_fields = ('created_by', 'last_message')
    inlines = [ChatParticipantInline, MessageInline]
    date_hierarchy = 'created_at'

    def display_participants(self, obj):
        return ", ".join([participant.user.email for participant in obj.participants.select_related('user')])
    display_participants.short_description = "Participants"

    def message_count(self, obj):
        return obj.messages.count()
    message_count.short_description = "Nombre de messages"

    def get_inline_instances(self, request, obj=None):
        if obj is None:
            return []
        return super().get_inline_instances(request, obj)

@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    list_display = ('id', 'chat', 'match', 'sender', 'truncated_content', 'message_type', 'status', 'is_deleted', 'created_at')
    list_filter = ('message_type', 'status', 'is_deleted', 'created_at')
    search_fields = ('content', 'sender__username', 'sender__email')
    readonly_fields = ('created_at', 'updated_at')
    raw_id_fields = ('chat', 'match', 'sender', 'reply_to')
    date_hierarchy = 'created_at'

    def truncated_content(self, obj):
        if len(obj.content) > 50:
            return obj.content[:50] + "..."
        return obj.content
    truncated_content.short_description = "Contenu"

@admin.register(ReadReceipt)
class ReadReceiptAdmin(admin.ModelAdmin):
    list_display = ('id', 'message', 'user', 'read_at')
    search_fields = ('message__content', 'user__email')
    readonly_fields = ('read_at',)
    date_hierarchy = 'read_at'

@admin.register(Reaction)
class ReactionAdmin(admin.ModelAdmin):
    list_display = ('id', 'message', 'user', 'emoji', 'created_at')
    search_fields = ('user__email',)

@admin.register(DeletedMessage)
class DeletedMessageAdmin(admin.ModelAdmin):
    list_display = ('id', 'message', 'user', 'deleted_at')
    list_filter = ('deleted_at',)
    search_fields = ('message__content', 'user__username', 'user__email')
    readonly_fields = ('deleted_at',)
    date_hierarchy = 'deleted_at'

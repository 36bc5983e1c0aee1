class BotMessages:
    """User-visible text sent by the router and the slash commands."""

    THINKING = "🤔 Thinking..."
    PROCESSING = "🤔 Processing..."
    EMPTY_REPLY = "⚠️ The model returned an empty response."
    NEW_QUERY_FAILED = "❌ Failed to create thread and process your query. Please try again."
    THREAD_MESSAGE_FAILED = "❌ Failed to process your message. Please try again."
    CONTEXT_NOT_FOUND = (
        "⚠️ Thread context not found. Please start a new query by mentioning the bot."
    )

    THREAD_ONLY = "❌ This command can only be used in threads."
    ALREADY_IN_THREAD = (
        "❌ You are already in a thread. Use this command in the main channel "
        "to create a new thread."
    )
    ADMIN_ONLY = "❌ You need Administrator permissions to use this command."
    NO_CONTEXT = "⚠️ No context found for this thread."

    THREAD_CLOSED = "✅ Thread closed."
    THREAD_CLOSED_WITH_REASON = "✅ Thread closed (Reason: {reason})."
    CLOSE_FAILED = "❌ Failed to close thread. Please try again."
    DEFAULT_CLOSE_REASON = "Thread closed by user command"

    NEW_THREAD_GUIDANCE = (
        "💡 To start a new conversation, mention the bot with your question in this "
        "channel and I'll create a new thread for you!"
    )
    COMMAND_FAILED = "❌ Failed to process command. Please try again."

    CONTEXT_SIZE = (
        "📊 **Thread Context Information**\n"
        "• Messages: {message_count}\n"
        "• Total characters: {total_characters:,}\n"
        "• Estimated tokens: {estimated_tokens:,}\n"
        "• Created: <t:{created}:R>\n"
        "• Last activity: <t:{last_activity}:R>\n"
        "• Status: {status}"
    )
    STATUS_ACTIVE = "🟢 Active"
    STATUS_INACTIVE = "🔴 Inactive"
    CONTEXT_SIZE_FAILED = "❌ Failed to retrieve context information. Please try again."

    BOT_STATS = (
        "🤖 **Bot Statistics**\n"
        "• Active threads: {active_threads}\n"
        "• Your threads: {user_threads}\n"
        "• Your active threads: {user_active_threads}"
    )
    BOT_STATS_FAILED = "❌ Failed to retrieve bot statistics. Please try again."

    CLEANUP_DONE = "✅ Cleaned up {removed} old thread contexts."
    CLEANUP_FAILED = "❌ Failed to cleanup threads. Please try again."

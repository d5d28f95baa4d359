"""User-facing texts sent by the bot. Kept in one place so wording stays consistent."""


class Notices:
    MENU = (
        "*Anonymous Chat*\n\n"
        "Chat with random people without revealing your identity.\n\n"
        "*Commands:*\n"
        "*.search* - Find a chat partner\n"
        "*.next* - Skip the current partner and find a new one\n"
        "*.stop* - End the anonymous chat\n"
        "*.sendpp* - Share your profile picture with your partner\n"
        "*.menu* - Show this menu\n\n"
        "Type *.search* to begin."
    )
    UNKNOWN_COMMAND = "Unknown command. Type *.menu* to see what you can do."
    NOT_IN_CHAT_HINT = "You are not chatting with anyone. Type *.search* to find a partner."

    ALREADY_CHATTING = (
        "You are already in a conversation. Use *.stop* to end the chat first."
    )
    ALREADY_SEARCHING = (
        "You are already searching. Please wait...\n\nUse *.stop* to cancel the search."
    )
    SEARCHING = (
        "*Searching for a chat partner...*\n\n"
        "Please wait while we find someone for you.\n\n"
        "Use *.stop* to cancel the search."
    )
    PARTNER_FOUND = (
        "*Partner found!*\n\n"
        "You are now connected to a random person. "
        "Be respectful and enjoy your conversation.\n\n"
        "Use *.next* to find a new partner or *.stop* to end the chat."
    )
    NOT_CHATTING = "You are not in a conversation with anyone."
    PARTNER_SKIPPED = "Your partner has decided to find someone new."
    PARTNER_ENDED = "Your partner has ended the conversation."
    NO_SESSION = "You are not in a conversation or search."
    CHAT_ENDED = "Chat ended.\n\nUse *.search* to find a new partner."
    SEARCH_EXPIRED = (
        "Nobody was found in time, so your search was stopped.\n\n"
        "Use *.search* to try again."
    )

    SENDPP_NOT_CHATTING = (
        "You must be in a conversation to send your profile picture."
    )
    PROFILE_PICTURE_CAPTION = "Partner's profile picture."
    PROFILE_PICTURE_SENT = "Profile picture successfully sent to your partner."
    PROFILE_PICTURE_UNAVAILABLE = (
        "Could not fetch your profile picture. Make sure you have one set."
    )

    UNSUPPORTED_CONTENT = "This type of message cannot be forwarded to your partner."
    DELIVERY_DEFERRED = (
        "Your message could not be delivered right now. "
        "It will be retried automatically."
    )
    DELIVERED_LATE = "Your earlier message has now been delivered."
    DELIVERY_FAILED = (
        "Your message could not be delivered after multiple attempts."
    )
    LATE_DELIVERY_NOTE = "\n\n[This message was delivered after a connection issue]"
    LATE_DELIVERY_NOTICE = "The message above was delivered after a connection issue."

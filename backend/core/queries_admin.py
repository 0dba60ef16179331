"""SQL shared by the login action and the session middleware."""


def sql_select_user_capabilities() -> str:
    """Capabilities granted to a user through their roles."""
    return """
        SELECT DISTINCT c.cap_name
        FROM capabilities c
        JOIN rolecapabilities rc ON rc.capabilityid = c.id
        JOIN userroles ur ON ur.roleid = rc.roleid
        WHERE ur.userid = %(user_id)s
        ORDER BY c.cap_name
    """


def sql_select_session_user() -> str:
    return """
        SELECT
            s.expires,
            s.inactive,
            u.id,
            u.username,
            u.full_name,
            u.inactive AS user_inactive
        FROM sessions s
        JOIN users u ON u.id = s.userid
        WHERE s.id = %(session_id)s
    """

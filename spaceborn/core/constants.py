"""Application constants"""

# Collection names
TOPICS = "ansh_topics"
SUBTOPICS = "ansh_subtopics"
RESOURCES = "resources"
TASKS = "tasks"
GROUPS = "groups"
GROUP_MEMBERS = "groupMembers"

# Maximum number of values a single contains_any predicate may carry
CONTAINS_ANY_LIMIT = 10

DEFAULT_RESOURCE_CATEGORY = "General"

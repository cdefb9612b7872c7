"""Domain layer for Nexus.

Pure models, value objects, state machines and events. Nothing in this
package performs I/O.

Packages:
    shared - Result monad, error taxonomy, base event and entity
    project - Project aggregate and team membership
    milestone - Milestone state machine
    task - Task state machine and submission checks
    sprint - Sprints, burndown and statistics
    meeting - Meetings, invitations and attendance
    notification - Recipient-owned notifications
    evaluation - Rubrics, weighted evaluations and feedback
    user - Account directory entries
"""

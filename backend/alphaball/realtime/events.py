# Inbound (client -> server)
JOIN_ROOM = "join-room"
START_GAME = "start-game"
SUBMIT_ANSWER = "submit-answer"
LEAVE_ROOM = "leave-room"
PING_ROOM = "ping-room"

# Outbound (server -> client)
CONNECTION_CONFIRMED = "connection-confirmed"
JOIN_CONFIRMED = "join-confirmed"
GAME_STATE_UPDATE = "game-state-update"
GAME_STARTED = "game-started"
TIMER_UPDATE = "timer-update"
NEW_ROUND = "new-round"
PLAYER_ANSWERED = "player-answered"
ANSWER_RESULT = "answer-result"
ROUND_COMPLETE = "round-complete"
GAME_COMPLETE = "game-complete"
PLAYER_LEFT = "player-left"
PONG_ROOM = "pong-room"
ERROR_MESSAGE = "error-message"

from blinker import Namespace

_potion_client = Namespace()

request = _potion_client.signal('request')

before_save = _potion_client.signal('before-save')

after_save = _potion_client.signal('after-save')

before_create = _potion_client.signal('before-create')

after_create = _potion_client.signal('after-create')

before_update = _potion_client.signal('before-update')

after_update = _potion_client.signal('after-update')

before_destroy = _potion_client.signal('before-destroy')

after_destroy = _potion_client.signal('after-destroy')
